from unittest.mock import MagicMock

def test_health_root(client):
    assert client.get("/health").json() == {"ok": True}

def test_health_supabase_ok(client):
    r = client.get("/health/supabase")
    assert r.status_code == 200
    assert r.json()["ok"] is True

def test_health_supabase_down_503(client, monkeypatch):
    broken = MagicMock()
    broken.table.side_effect = RuntimeError("unreachable")
    monkeypatch.setattr("photomarket.infra.supabase_client.get_supabase", lambda: broken)
    r = client.get("/health/supabase")
    assert r.status_code == 503
    assert r.json()["error"] == "RuntimeError"

def test_health_stripe_exposes_no_secret(client):
    body = client.get("/health/stripe").json()
    assert set(body) == {"public_key_set", "secret_key_set", "webhook_secret_set", "live_mode", "ui_mode"}

def test_health_rate_limit_disabled_in_tests(client):
    assert client.get("/health/rate-limit").json()["enabled"] is False

def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["x-content-type-options"] == "nosniff"
    assert "https://js.stripe.com" in r.headers["content-security-policy"]
