from photomarket.auth.models import AuthResponse

def test_login_sets_cookie(client, monkeypatch):
    monkeypatch.setattr(
        "photomarket.auth.views.svc_login",
        lambda email, pwd: AuthResponse(True, user={"id": "u1", "email": email}, session={"access_token": "tok"}),
    )
    r = client.post("/api/v1/auth/login", json={"email": "buyer@example.com", "password": "x"})
    assert r.status_code == 200
    assert r.json()["access_token"] == "tok"
    assert "sb_access=tok" in r.headers.get("set-cookie", "")

def test_login_failure_401(client, monkeypatch):
    monkeypatch.setattr("photomarket.auth.views.svc_login", lambda email, pwd: AuthResponse(False, error="Identifiants invalides"))
    r = client.post("/api/v1/auth/login", json={"email": "buyer@example.com", "password": "x"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Identifiants invalides"

def test_signup_weak_password_422(client):
    r = client.post("/api/v1/auth/signup", json={"email": "n@example.com", "password": "alllowercase1", "full_name": "N"})
    assert r.status_code == 422

def test_signup_pending_confirmation(client, monkeypatch):
    calls = {}

    def _signup(email, password, full_name, role):
        calls.update(role=role)
        return AuthResponse(True, error="Inscription réussie, vérifiez votre email")
    monkeypatch.setattr("photomarket.auth.views.svc_signup", _signup)
    r = client.post(
        "/api/v1/auth/signup",
        json={"email": "n@example.com", "password": "Secret123", "full_name": "N", "role": "photographer"},
    )
    assert r.status_code == 200
    assert "vérifiez" in r.json()["message"]
    assert calls["role"] == "photographer"

def test_me_requires_auth(client):
    assert client.get("/api/v1/auth/me").status_code == 401

def test_me_returns_user(client, as_user):
    as_user()
    body = client.get("/api/v1/auth/me").json()
    assert body["id"] == "buyer-1"
    assert body["role"] == "buyer"

def test_logout_clears_cookie(client):
    r = client.post("/api/v1/auth/logout")
    assert r.status_code == 200
    assert "sb_access=" in r.headers.get("set-cookie", "")
