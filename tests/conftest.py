import os

os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from photomarket.app import app as fastapi_app
from photomarket.payments.models import Transaction
from photomarket.payments.repository import DuplicateTransaction
from photomarket.session import SessionHandle
from photomarket.utils.security import get_current_user, get_optional_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

BUYER: Dict[str, Any] = {
    "id": "buyer-1",
    "email": "buyer@example.com",
    "full_name": "Buyer One",
    "role": "buyer",
    "metadata": {"full_name": "Buyer One", "role": "buyer"},
    "token": "fake-token",
}

SELLER: Dict[str, Any] = {
    "id": "seller-1",
    "email": "seller@example.com",
    "full_name": "Seller One",
    "role": "photographer",
    "metadata": {"full_name": "Seller One", "role": "photographer"},
    "token": "fake-seller-token",
}

@pytest.fixture
def as_user(app):
    """Simule un utilisateur connecté (acheteur par défaut) pour les dépendances d'auth."""
    def _login(user: Dict[str, Any] = BUYER):
        app.dependency_overrides[get_optional_user] = lambda: user
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    yield _login
    app.dependency_overrides.pop(get_optional_user, None)
    app.dependency_overrides.pop(get_current_user, None)

@pytest.fixture
def guest_handle() -> SessionHandle:
    handle = SessionHandle(store={})
    handle.settle(None)
    return handle

@pytest.fixture
def buyer_handle() -> SessionHandle:
    handle = SessionHandle(store={})
    handle.settle(BUYER)
    return handle

@pytest.fixture
def make_photo_row():
    """Ligne 'photos' avec l'album expansé, telle que renvoyée par PostgREST."""
    def _make(
        photo_id: str,
        album_id: str = "alb-1",
        seller_id: str = "seller-1",
        price: Any = 10,
        tiers: Optional[List[Dict[str, Any]]] = None,
        album_title: str = "Marathon 2024",
    ) -> Dict[str, Any]:
        return {
            "id": photo_id,
            "title": f"Photo {photo_id}",
            "watermarked_url": f"https://cdn.test/wm/{photo_id}.jpg",
            "original_url": f"{album_id}/{photo_id}.jpg",
            "album_id": album_id,
            "albums": {
                "id": album_id,
                "title": album_title,
                "price": price,
                "photographer_id": seller_id,
                "pricing_packages": {"id": "pkg-1", "name": "Volume", "tiers": tiers} if tiers else None,
                "profiles": {"full_name": "Seller One"},
            },
        }
    return _make

class FakeTransactions:
    """Table 'transactions' en mémoire avec contrainte d'unicité sur la référence de paiement."""

    def __init__(self):
        self.rows: List[Transaction] = []

    def find_by_reference(self, reference: str) -> Optional[Transaction]:
        return next((t for t in self.rows if reference and t.payment_reference == reference), None)

    def insert(self, tx: Transaction) -> Transaction:
        if tx.payment_reference and self.find_by_reference(tx.payment_reference):
            raise DuplicateTransaction(tx.payment_reference)
        n = len(self.rows) + 1
        created = tx.model_copy(update={"id": f"tx-{n}", "created_at": f"2024-05-01T10:00:{n:02d}"})
        self.rows.append(created)
        return created

    def get(self, tx_id: str) -> Optional[Transaction]:
        return next((t for t in self.rows if t.id == tx_id), None)

    def by(self, attr: str, values) -> List[Transaction]:
        values = {str(v) for v in values or []}
        return [t for t in self.rows if getattr(t, attr) is not None and str(getattr(t, attr)) in values]

@pytest.fixture
def tx_store(monkeypatch) -> FakeTransactions:
    store = FakeTransactions()
    repo = "photomarket.payments.repository"
    monkeypatch.setattr(f"{repo}.find_transaction_by_reference", store.find_by_reference)
    monkeypatch.setattr(f"{repo}.insert_transaction", store.insert)
    monkeypatch.setattr(f"{repo}.get_transaction", store.get)
    monkeypatch.setattr(f"{repo}.list_transactions_by_buyer", lambda buyer_id: store.by("buyer_id", [buyer_id]))
    monkeypatch.setattr(f"{repo}.list_transactions_by_references", lambda refs: store.by("payment_reference", refs))
    monkeypatch.setattr(f"{repo}.list_transactions_by_ids", lambda ids: store.by("id", ids))
    monkeypatch.setattr(f"{repo}.list_transactions_by_seller", lambda seller_id: store.by("seller_id", [seller_id]))
    return store

# Aucun accès réseau à Supabase pendant les tests
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("photomarket.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("photomarket.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("photomarket.users.repository.get_profile_by_email", lambda email: None)

@pytest.fixture
def photo_catalog(monkeypatch, make_photo_row):
    """Photos en mémoire servies aux lectures du panier et des achats."""
    rows: Dict[str, Dict[str, Any]] = {}

    def _add(photo_id: str, **kwargs) -> Dict[str, Any]:
        rows[photo_id] = make_photo_row(photo_id, **kwargs)
        return rows[photo_id]

    def _fetch(photo_ids):
        return [rows[str(i)] for i in photo_ids if str(i) in rows]

    def _list(album_id, photo_ids=None):
        found = [r for r in rows.values() if r["album_id"] == album_id]
        if photo_ids is not None:
            found = [r for r in found if r["id"] in {str(i) for i in photo_ids}]
        return found

    monkeypatch.setattr("photomarket.albums.repository.fetch_photos_with_album", _fetch)
    monkeypatch.setattr("photomarket.albums.repository.list_album_photos", _list)
    _add.rows = rows
    return _add
