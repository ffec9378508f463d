import pytest

ALBUM = {
    "id": "alb-1",
    "title": "Marathon 2024",
    "price": 12,
    "photographer_id": "seller-1",
    "cover_image_url": None,
    "profiles": {"full_name": "Seller One"},
    "pricing_packages": {"id": "pkg-1", "name": "Volume", "tiers": [
        {"quantity": 10, "price": 6}, {"quantity": 1, "price": 10}, {"quantity": 5, "price": 8},
    ]},
}

@pytest.fixture
def album_lookup(monkeypatch):
    seen = []

    def _get(title):
        seen.append(title)
        return ALBUM if title.lower() == "marathon 2024" else None
    monkeypatch.setattr("photomarket.albums.repository.get_album_by_title", _get)
    return seen

def test_album_by_readable_title(client, album_lookup):
    r = client.get("/api/v1/albums/marathon%202024")
    assert r.status_code == 200
    body = r.json()
    assert album_lookup == ["marathon 2024"]
    assert body["photographer_name"] == "Seller One"
    assert [t["quantity"] for t in body["pricing"]["tiers"]] == [1, 5, 10]

def test_unknown_album_404(client, album_lookup):
    assert client.get("/api/v1/albums/nope").status_code == 404

@pytest.mark.parametrize("count,unit,total", [(1, 10, 10), (7, 8, 56), (10, 6, 60), (24, 6, 144)])
def test_price_preview_uses_tier_rule(client, album_lookup, count, unit, total):
    body = client.get(f"/api/v1/albums/Marathon%202024/price?count={count}").json()
    assert body["unit_price"] == unit
    assert body["total"] == total

def test_price_preview_without_schedule_uses_flat_price(client, monkeypatch):
    monkeypatch.setattr(
        "photomarket.albums.repository.get_album_by_title",
        lambda title: {**ALBUM, "pricing_packages": None},
    )
    body = client.get("/api/v1/albums/Marathon%202024/price?count=3").json()
    assert body["tier"] is None
    assert body["total"] == 36

def test_price_preview_rejects_negative_count(client, album_lookup):
    assert client.get("/api/v1/albums/Marathon%202024/price?count=-1").status_code == 422
