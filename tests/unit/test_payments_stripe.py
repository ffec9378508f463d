import json
import urllib.parse
import pytest
from unittest.mock import MagicMock

from photomarket.payments import stripe_client
from photomarket.payments.metadata import decode_item_ids, extract_metadata, make_metadata, parse_amount
from photomarket.payments.models import Transaction

def test_decode_item_ids_variants():
    assert decode_item_ids('["a", "b"]') == ["a", "b"]
    assert decode_item_ids("a, b") == ["a", "b"]
    assert decode_item_ids("[]") is None
    assert decode_item_ids("") is None
    assert decode_item_ids(None) is None
    assert decode_item_ids('{"a": 1}') is None

def test_parse_amount():
    assert parse_amount("56") == 56.0
    assert parse_amount(" 19.999 ") == 20.0
    with pytest.raises(ValueError):
        parse_amount("abc")
    with pytest.raises(ValueError):
        parse_amount("-1")

def test_metadata_drops_photo_list_over_stripe_limit():
    meta = make_metadata(album_id="a", seller_id="s", amount=10, item_ids=[f"{i:036d}" for i in range(40)])
    assert "photo_ids" not in meta
    assert meta["photo_count"] == "40"
    event = {"data": {"object": {"id": "cs_1", "payment_status": "paid", "metadata": meta}}}
    assert extract_metadata(event)["ids_missing"] is True

def test_build_return_url_keeps_session_placeholder():
    url = stripe_client.build_return_url(album_id="alb-1", amount=56, seller_id="seller-1", item_ids=["p1", "p2"], base_url="https://shop.test/")
    assert url.startswith("https://shop.test/checkout/return?session_id={CHECKOUT_SESSION_ID}&")
    query = urllib.parse.parse_qs(url.split("&", 1)[1])
    assert query["amount"] == ["56.00"]
    assert json.loads(query["photos"][0]) == ["p1", "p2"]

def test_create_session_embedded_destination_charge(monkeypatch):
    fake_create = MagicMock(return_value={"id": "cs_1", "client_secret": "sec"})
    monkeypatch.setattr(stripe_client.stripe.checkout.Session, "create", fake_create)

    session = stripe_client.create_session(
        album_id="alb-1",
        amount=56,
        seller_routing_id="acct_1",
        commission=5.6,
        item_ids=["p1"],
        buyer_email="b@example.com",
        mode="embedded",
        seller_platform_id="seller-1",
    )

    assert session["client_secret"] == "sec"
    params = fake_create.call_args.kwargs
    assert params["ui_mode"] == "embedded"
    assert "return_url" in params and "success_url" not in params
    assert params["line_items"][0]["price_data"]["unit_amount"] == 5600
    assert params["payment_intent_data"] == {"application_fee_amount": 560, "transfer_data": {"destination": "acct_1"}}
    assert params["customer_email"] == "b@example.com"
    assert params["metadata"]["photo_ids"] == '["p1"]'

def test_create_session_hosted_with_discount(monkeypatch):
    fake_create = MagicMock(return_value={"id": "cs_2", "url": "https://checkout.stripe.test/cs_2"})
    monkeypatch.setattr(stripe_client.stripe.checkout.Session, "create", fake_create)

    stripe_client.create_session(
        album_id="alb-1", amount=10, seller_routing_id="acct_1", commission=1, item_ids=[],
        discount_code="promo_1", mode="hosted", seller_platform_id="seller-1",
    )
    params = fake_create.call_args.kwargs
    assert "ui_mode" not in params
    assert params["success_url"].endswith("seller_id=seller-1")
    assert params["discounts"] == [{"promotion_code": "promo_1"}]

def test_transaction_row_mapping_round_trips_column_names():
    row = {
        "id": 5, "buyer_id": None, "photographer_id": "s1", "album_id": "a1", "amount": "20.00",
        "commission_amount": "2.00", "stripe_payment_intent_id": "cs_1", "status": "paid",
        "unlocked_photo_ids": '["p1"]', "photographer_message": "Merci",
    }
    tx = Transaction.from_row(row)
    assert tx.id == "5"
    assert tx.unlocked_item_ids == ["p1"]
    assert tx.seller_message == "Merci"
    out = tx.to_row()
    assert out["photographer_id"] == "s1"
    assert out["stripe_payment_intent_id"] == "cs_1"
    assert out["unlocked_photo_ids"] == ["p1"]
