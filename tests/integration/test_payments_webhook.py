import pytest

def _event(session_id="cs_live_1", photo_ids='["p1"]', photo_count="1", status="paid", event_type="checkout.session.completed", amount_total=None):
    meta = {"album_id": "alb-1", "seller_id": "seller-1", "amount": "10.00", "buyer_id": "buyer-1", "photo_count": photo_count}
    if photo_ids:
        meta["photo_ids"] = photo_ids
    obj = {"id": session_id, "payment_status": status, "metadata": meta}
    if amount_total is not None:
        obj["amount_total"] = amount_total
    return {"type": event_type, "data": {"object": obj}}

@pytest.fixture
def send_event(client, monkeypatch):
    def _send(event):
        async def _parse(request):
            return event
        monkeypatch.setattr("photomarket.payments.stripe_client.parse_event", _parse)
        return client.post("/api/v1/payments/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=x"})
    return _send

def test_invalid_signature_400(client, monkeypatch):
    async def _bad(request):
        raise ValueError("bad signature")
    monkeypatch.setattr("photomarket.payments.stripe_client.parse_event", _bad)
    r = client.post("/api/v1/payments/webhook", content=b"{}")
    assert r.status_code == 400

def test_other_event_types_ignored(send_event, tx_store):
    r = send_event(_event(event_type="payment_intent.created"))
    assert r.json() == {"status": "ignored"}
    assert tx_store.rows == []

def test_completed_session_records_once(send_event, tx_store):
    first = send_event(_event())
    assert first.status_code == 200
    assert first.json() == {"status": "created", "transaction_id": "tx-1"}

    second = send_event(_event())
    assert second.json() == {"status": "already_recorded", "transaction_id": "tx-1"}

    [tx] = tx_store.rows
    assert tx.buyer_id == "buyer-1"
    assert tx.unlocked_item_ids == ["p1"]
    assert tx.commission_amount == 1

def test_discounted_session_records_charged_amount(send_event, tx_store):
    # Code promo: 10.00 au panier, 8.00 encaissés
    assert send_event(_event(amount_total=800)).json()["status"] == "created"
    [tx] = tx_store.rows
    assert tx.amount == 8
    assert tx.commission_amount == 0.8

def test_missing_photo_list_is_deferred(send_event, tx_store):
    r = send_event(_event(photo_ids=None, photo_count="120"))
    assert r.json()["status"] == "deferred"
    assert tx_store.rows == []

def test_album_purchase_without_photo_list_records_full_album(send_event, tx_store):
    r = send_event(_event(photo_ids=None, photo_count="0"))
    assert r.json()["status"] == "created"
    assert tx_store.rows[0].unlocked_item_ids is None

def test_unpaid_session_ignored(send_event, tx_store):
    assert send_event(_event(status="unpaid")).json()["status"] == "ignored"
    assert tx_store.rows == []

def test_recording_failure_500(send_event, monkeypatch):
    def _down(reference):
        raise RuntimeError("db down")
    monkeypatch.setattr("photomarket.payments.repository.find_transaction_by_reference", _down)
    assert send_event(_event()).status_code == 500
