"""JSON API: same session semantics as the page, errors in the standard envelope."""

import pytest

from slaypoints.main import app

pytestmark = pytest.mark.asyncio


async def _signup(client, email="a@example.com", password="hunter22"):
    return await client.post("/v1/auth/signup", json={"email": email, "password": password})


async def test_me_requires_session(client):
    r = await client.get("/v1/auth/me")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"
    assert "request_id" in r.json()


async def test_signup_and_me(client):
    r = await _signup(client)
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["email"] == "a@example.com"
    assert body["points"] == 0

    r = await client.get("/v1/auth/me")
    assert r.status_code == 200
    assert r.json()["uid"] == body["user"]["uid"]


async def test_duplicate_signup(client):
    await _signup(client)
    client.cookies.clear()
    r = await _signup(client, email="A@example.com")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "auth/email-already-in-use"


async def test_weak_password(client):
    r = await _signup(client, password="123")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "auth/weak-password"


async def test_login_bad_credentials(client):
    r = await client.post("/v1/auth/login", json={"email": "a@example.com", "password": "hunter22"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "auth/invalid-credential"


async def test_missing_fields_is_validation_error(client):
    r = await client.post("/v1/auth/login", json={"email": "a@example.com"})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_adjust(client):
    await _signup(client)
    assert (await client.post("/v1/points/adjust", json={"adjustment": 10})).json() == {"points": 10}
    assert (await client.post("/v1/points/adjust", json={"adjustment": "-15"})).json() == {"points": 0}
    assert (await client.post("/v1/points/adjust", json={"adjustment": "5"})).json() == {"points": 5}
    assert (await client.post("/v1/points/adjust", json={"adjustment": "3"})).json() == {"points": 8}
    assert (await client.get("/v1/points")).json() == {"email": "a@example.com", "points": 8}


async def test_adjust_invalid(client):
    await _signup(client)
    await client.post("/v1/points/adjust", json={"adjustment": 4})
    for bad in ("abc", ""):
        r = await client.post("/v1/points/adjust", json={"adjustment": bad})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "INVALID_ADJUSTMENT"
        assert r.json()["error"]["message"] == "Please enter a valid number."
    assert (await client.get("/v1/points")).json()["points"] == 4


@pytest.mark.parametrize("huge", ["9" * 5000, str(2**63), 2**63, -(2**64)])
async def test_adjust_out_of_range(client, huge):
    await _signup(client)
    await client.post("/v1/points/adjust", json={"adjustment": 4})
    r = await client.post("/v1/points/adjust", json={"adjustment": huge})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_ADJUSTMENT"
    assert r.json()["error"]["message"] == "That adjustment is too large."
    assert (await client.get("/v1/points")).json()["points"] == 4


async def test_successful_call_does_not_report_earlier_error(client):
    await _signup(client)
    r = await client.post("/v1/points/adjust", json={"adjustment": "abc"})
    assert r.status_code == 400
    r = await client.post("/v1/points/refresh")
    assert r.status_code == 200
    assert r.json() == {"points": 0}


async def test_points_require_login(client):
    assert (await client.get("/v1/points")).status_code == 401
    assert (await client.post("/v1/points/adjust", json={"adjustment": 1})).status_code == 401


async def test_logout_then_login_reads_persisted_balance(client):
    uid = (await _signup(client)).json()["user"]["uid"]
    await client.post("/v1/points/adjust", json={"adjustment": 3})

    await app.state.store.update_field("userPoints", uid, "points", 40)
    assert (await client.get("/v1/points")).json()["points"] == 3

    assert (await client.post("/v1/auth/logout")).json() == {"status": "ok"}
    assert (await client.get("/v1/points")).status_code == 401
    r = await client.post("/v1/auth/login", json={"email": "a@example.com", "password": "hunter22"})
    assert r.json()["points"] == 40


async def test_refresh(client):
    uid = (await _signup(client)).json()["user"]["uid"]
    await app.state.store.update_field("userPoints", uid, "points", 12)
    assert (await client.post("/v1/points/refresh")).json() == {"points": 12}


async def test_password_reset(client, mailer):
    await _signup(client)
    await client.post("/v1/auth/logout")
    r = await client.post("/v1/auth/password-reset", json={"email": "a@example.com"})
    assert r.status_code == 200
    assert r.json()["message"] == "Password reset email sent! Check your inbox."

    r = await client.post(
        "/v1/auth/password-reset/confirm",
        json={"token": mailer.last_reset_token(), "password": "fresh-pass"},
    )
    assert r.status_code == 200
    r = await client.post("/v1/auth/login", json={"email": "a@example.com", "password": "fresh-pass"})
    assert r.status_code == 200


async def test_password_reset_missing_email(client):
    r = await client.post("/v1/auth/password-reset", json={})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "auth/missing-email"


async def test_password_reset_bad_token(client):
    r = await client.post("/v1/auth/password-reset/confirm", json={"token": "nope", "password": "fresh-pass"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "auth/invalid-action-code"


async def test_view_state_and_theme(client):
    state = (await client.get("/v1/view")).json()
    assert state["theme"] == "light"
    assert state["user"] is None
    assert state["loading"] is False
    assert (await client.post("/v1/view/theme")).json()["theme"] == "dark"
    assert (await client.get("/v1/view")).json()["theme"] == "dark"
