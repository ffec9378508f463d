from photomarket.cart.aggregator import grand_total, group_by_album, summarize, total_for_group
from photomarket.cart.models import CartItem
from photomarket.cart.repository import cart_item_from_row, fetch_cart_items
from photomarket.cart.store import CartStore
from photomarket.pricing.models import PricingSchedule, PricingTier

VOLUME = PricingSchedule(tiers=[
    PricingTier(min_quantity=1, unit_price=10),
    PricingTier(min_quantity=5, unit_price=8),
])

def _item(photo_id, album_id="alb-1", schedule=VOLUME, flat=10.0):
    return CartItem(id=photo_id, album_id=album_id, seller_id=f"seller-{album_id}", schedule=schedule, flat_price=flat)

def test_group_by_album_keeps_insertion_order():
    items = [_item("p3"), _item("q1", album_id="alb-2", schedule=None, flat=4), _item("p1"), _item("p2")]
    groups = group_by_album(items)
    assert list(groups) == ["alb-1", "alb-2"]
    assert groups["alb-1"].item_ids == ["p3", "p1", "p2"]
    assert groups["alb-2"].seller_id == "seller-alb-2"

def test_duplicate_items_count_once():
    groups = group_by_album([_item("p1"), _item("p1")])
    assert groups["alb-1"].count == 1

def test_group_and_grand_totals_use_pricing_engine():
    items = [_item(f"p{i}") for i in range(5)] + [_item("q1", album_id="alb-2", schedule=None, flat=4)]
    groups = group_by_album(items)
    assert total_for_group(groups["alb-1"]) == 40
    assert total_for_group(groups["alb-2"]) == 4
    assert grand_total(items) == 44

def test_summarize_reports_applicable_tier():
    summary = summarize([_item(f"p{i}") for i in range(6)])
    assert summary["item_count"] == 6
    assert summary["grand_total"] == 48
    group = summary["groups"][0]
    assert group["tier_min_quantity"] == 5
    assert group["unit_price"] == 8
    assert [i["id"] for i in group["items"]] == [f"p{i}" for i in range(6)]

def test_cart_store_add_remove_clear():
    session = {}
    cart = CartStore(session)
    assert cart.add("p1") is True
    assert cart.add("p1") is False
    assert cart.add("p2") is True
    assert session["cart"] == ["p1", "p2"]
    assert cart.remove("p1") is True
    assert cart.remove("absent") is False
    assert cart.remove_many(["p2", "p9"]) == 1
    cart.add("p3")
    cart.clear()
    assert cart.ids() == []

def test_cart_item_from_row_uses_album_pricing(make_photo_row):
    item = cart_item_from_row(make_photo_row("p1", price="12.5", tiers=[{"quantity": 5, "price": 8}]))
    assert item.album_id == "alb-1"
    assert item.seller_id == "seller-1"
    assert item.seller_name == "Seller One"
    assert item.flat_price == 12.5
    assert item.schedule.tiers[0].unit_price == 8

def test_cart_item_from_row_rejects_orphan_photo():
    assert cart_item_from_row({"id": "p1", "albums": None}) is None

def test_fetch_cart_items_keeps_requested_order_and_drops_missing(monkeypatch, make_photo_row):
    rows = [make_photo_row("p2"), make_photo_row("p1")]
    monkeypatch.setattr("photomarket.albums.repository.fetch_photos_with_album", lambda ids: rows)
    items = fetch_cart_items(["p1", "gone", "p2"])
    assert [i.id for i in items] == ["p1", "p2"]
