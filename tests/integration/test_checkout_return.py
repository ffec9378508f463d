import json
import urllib.parse
import pytest

RETURN = "/checkout/return"

def _return_url(session_id="cs_test_1", photos=("p1", "p2"), amount="20.00", album_id="alb-1"):
    params = {"session_id": session_id, "success": "true", "album_id": album_id, "amount": amount, "seller_id": "seller-1"}
    if photos:
        params["photos"] = json.dumps(list(photos))
    return f"{RETURN}?{urllib.parse.urlencode(params)}"

@pytest.fixture
def paid_sessions(monkeypatch):
    sessions = {}
    lookups = []

    def _get(session_id):
        lookups.append(session_id)
        return sessions[session_id]
    monkeypatch.setattr("photomarket.payments.stripe_client.get_session", _get)

    def _add(session_id="cs_test_1", status="paid", amount_total=2000, photo_ids='["p1", "p2"]', photo_count=None):
        meta = {"album_id": "alb-1", "seller_id": "seller-1", "amount": f"{amount_total / 100:.2f}"}
        if photo_ids:
            meta["photo_ids"] = photo_ids
        if photo_count is not None:
            meta["photo_count"] = photo_count
        sessions[session_id] = {"id": session_id, "payment_status": status, "amount_total": amount_total, "metadata": meta}
    _add.lookups = lookups
    return _add

def test_return_records_once_and_redirects_without_params(client, photo_catalog, paid_sessions, tx_store):
    paid_sessions()
    for pid in ("p1", "p2", "p3"):
        photo_catalog(pid)
        client.post("/api/v1/cart/items", json={"photo_id": pid})

    r = client.get(_return_url(), follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/api/v1/purchases"

    [tx] = tx_store.rows
    assert tx.payment_reference == "cs_test_1"
    assert tx.buyer_id is None
    assert tx.amount == 20
    assert tx.commission_amount == 2
    assert tx.unlocked_item_ids == ["p1", "p2"]

    # Seules les photos achetées quittent le panier
    cart = client.get("/api/v1/cart").json()
    assert [i["id"] for i in cart["groups"][0]["items"]] == ["p3"]

    # Rechargement: aucune seconde écriture, aucun nouvel appel Stripe
    again = client.get(_return_url(), follow_redirects=False)
    assert again.status_code == 303
    assert len(tx_store.rows) == 1
    assert paid_sessions.lookups == ["cs_test_1"]

def test_guest_sees_purchase_and_notice_once(client, photo_catalog, paid_sessions, tx_store):
    paid_sessions()
    photo_catalog("p1")
    photo_catalog("p2")
    client.get(_return_url(), follow_redirects=False)

    first = client.get("/api/v1/purchases").json()
    assert first["notice"]["level"] == "success"
    assert first["notice"]["payment_reference"] == "cs_test_1"
    [purchase] = first["purchases"]
    assert purchase["payment_reference"] == "cs_test_1"
    assert purchase["locked"] is False
    assert purchase["scope"] == "partial"

    assert client.get("/api/v1/purchases").json()["notice"] is None

def test_signed_in_buyer_is_attached(client, as_user, paid_sessions, tx_store):
    paid_sessions()
    as_user()
    client.get(_return_url(), follow_redirects=False)
    assert tx_store.rows[0].buyer_id == "buyer-1"

def test_forged_amount_and_photos_are_ignored(client, paid_sessions, tx_store):
    paid_sessions(amount_total=2000, photo_ids='["p1", "p2"]')
    client.get(_return_url(photos=("p1", "p2", "p9"), amount="1.00"), follow_redirects=False)
    [tx] = tx_store.rows
    assert tx.amount == 20
    assert tx.unlocked_item_ids == ["p1", "p2"]

def test_forged_album_in_return_url_records_nothing(client, photo_catalog, paid_sessions, tx_store):
    paid_sessions(photo_ids=None, photo_count="15")
    for pid in ("b1", "b2"):
        photo_catalog(pid, album_id="alb-2", seller_id="seller-2")
        client.post("/api/v1/cart/items", json={"photo_id": pid})

    r = client.get(_return_url(photos=None, album_id="alb-2"), follow_redirects=False)
    assert r.status_code == 303
    assert tx_store.rows == []
    body = client.get("/api/v1/purchases").json()
    assert body["purchases"] == []
    assert body["notice"]["level"] == "error"
    assert "cs_test_1" in body["notice"]["message"]
    assert client.get("/api/v1/cart").json()["item_count"] == 2

def test_long_photo_list_must_match_paid_count(client, photo_catalog, paid_sessions, tx_store):
    paid_sessions(photo_ids=None, photo_count="3")
    for pid in ("p1", "p2", "p3"):
        photo_catalog(pid)

    client.get(_return_url(photos=None), follow_redirects=False)
    assert tx_store.rows == []

    client.get(_return_url(photos=("p1", "p2", "p3")), follow_redirects=False)
    [tx] = tx_store.rows
    assert tx.unlocked_item_ids == ["p1", "p2", "p3"]

def test_unpaid_session_records_nothing_and_can_retry(client, paid_sessions, tx_store):
    paid_sessions(status="unpaid")
    client.get(_return_url(), follow_redirects=False)
    assert tx_store.rows == []
    notice = client.get("/api/v1/purchases").json()["notice"]
    assert notice["level"] == "error"

    paid_sessions(status="paid")
    client.get(_return_url(), follow_redirects=False)
    assert len(tx_store.rows) == 1

def test_already_recorded_by_webhook_is_not_duplicated(client, paid_sessions, tx_store):
    from photomarket.payments.models import Transaction
    tx_store.insert(Transaction(seller_id="seller-1", album_id="alb-1", amount=20, commission_amount=2, payment_reference="cs_test_1"))
    paid_sessions()
    client.get(_return_url(), follow_redirects=False)
    assert len(tx_store.rows) == 1
    # La référence est tout de même rattachée à la session invitée
    assert len(client.get("/api/v1/purchases").json()["purchases"]) == 1

def test_recording_failure_surfaces_reference(client, paid_sessions, monkeypatch):
    paid_sessions()

    def _down(reference):
        raise RuntimeError("db down")
    monkeypatch.setattr("photomarket.payments.repository.find_transaction_by_reference", _down)

    client.get(_return_url(), follow_redirects=False)
    notice = client.get("/api/v1/purchases").json()["notice"]
    assert notice["level"] == "error"
    assert "cs_test_1" in notice["message"]

def test_plain_visit_without_success_is_ignored(client, tx_store):
    r = client.get(f"{RETURN}?success=false&session_id=cs_x", follow_redirects=False)
    assert r.status_code == 303
    assert tx_store.rows == []
    assert client.get("/api/v1/purchases").json()["notice"] is None
