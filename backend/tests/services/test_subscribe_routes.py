"""Subscribe & Verify routes - HTTP behaviour of the sign-up flow.

Invariants:
    - POST /api/subscribe answers JSON; verificationUrl only in test mode
    - GET /api/verify answers HTML for every outcome
    - Throttled requests get 429 with Retry-After
"""

from urllib.parse import parse_qs, urlparse

from waitlist.api.dependencies import get_dispatcher, get_subscription_service
from waitlist.main import app
from waitlist.services.notification_dispatcher import NotificationDispatcher

from tests.services.mail_doubles import FailingMailer, RecordingLiveMailer


def _token(body: dict) -> str:
    return parse_qs(urlparse(body["verificationUrl"]).query)["token"][0]


async def _subscribe(client, email="user@example.com", **kwargs):
    return await client.post("/api/subscribe", json={"email": email}, **kwargs)


# ─── subscribe ──────────────────────────────────────────────────


async def test_subscribe_test_mode_returns_verification_url(client):
    res = await _subscribe(client)

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["delivery"] == "logged"
    assert "SMTP not configured" in body["message"]
    assert body["verificationUrl"].startswith("http://test/api/verify?token=")


async def test_subscribe_then_verify_end_to_end(client):
    token = _token((await _subscribe(client)).json())

    res = await client.get("/api/verify", params={"token": token})

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert "user@example.com" in res.text
    assert "Email Verified!" in res.text


async def test_subscribe_normalizes_email(client):
    token = _token((await _subscribe(client, "  MiXeD@Example.COM ")).json())
    res = await client.get("/api/verify", params={"token": token})
    assert "mixed@example.com" in res.text


async def test_later_subscribe_supersedes_earlier_link(client):
    first = _token((await _subscribe(client)).json())
    second = _token((await _subscribe(client)).json())

    assert (await client.get("/api/verify", params={"token": first})).status_code == 404
    assert (await client.get("/api/verify", params={"token": second})).status_code == 200


async def test_expired_link_then_resubscribe(client, clock):
    old = _token((await _subscribe(client)).json())
    clock.advance(hours=24, seconds=1)

    res = await client.get("/api/verify", params={"token": old})
    assert res.status_code == 410
    assert "Link Expired" in res.text

    new = _token((await _subscribe(client)).json())
    assert (await client.get("/api/verify", params={"token": new})).status_code == 200


async def test_sixth_request_in_window_is_throttled(client, clock):
    for i in range(5):
        assert (await _subscribe(client, f"u{i}@example.com")).status_code == 200

    res = await _subscribe(client, "u5@example.com")
    assert res.status_code == 429
    assert res.json()["code"] == "RATE_LIMITED"
    assert res.headers["retry-after"] == "3600"

    clock.advance(minutes=60)
    assert (await _subscribe(client, "u5@example.com")).status_code == 200


async def test_forwarded_for_ignored_unless_trusted(client):
    for i in range(5):
        await _subscribe(client, f"u{i}@example.com", headers={"X-Forwarded-For": f"1.2.3.{i}"})
    res = await _subscribe(client, headers={"X-Forwarded-For": "9.9.9.9"})
    assert res.status_code == 429


async def test_forwarded_for_used_when_trusted(client, test_settings):
    test_settings.trust_forwarded_for = True
    for i in range(5):
        await _subscribe(client, f"u{i}@example.com", headers={"X-Forwarded-For": "1.2.3.4"})
    res = await _subscribe(client, headers={"X-Forwarded-For": "5.6.7.8, 1.2.3.4"})
    assert res.status_code == 200


async def test_invalid_email_shapes(client):
    for payload in ({"email": "a@b"}, {"email": "noatsign.com"}, {"email": ""}, {}):
        res = await client.post("/api/subscribe", json=payload)
        assert res.status_code == 400
        assert res.json() == {
            "error": "Please enter a valid email address.", "code": "INVALID_EMAIL",
        }


async def test_overlong_email_counts_against_rate_limit(client):
    long_email = "a" * 2000 + "@example.com"
    for _ in range(5):
        res = await _subscribe(client, long_email)
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_EMAIL"

    res = await _subscribe(client, long_email)
    assert res.status_code == 429


async def test_missing_body_is_invalid_email(client):
    res = await client.post("/api/subscribe")
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_EMAIL"


async def test_malformed_json_is_validation_error(client):
    res = await client.post(
        "/api/subscribe", content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


async def test_mail_failure_still_subscribes(client):
    failing = NotificationDispatcher(
        FailingMailer(), owner_email="owner@example.com", site_name="Test Site",
    )
    app.dependency_overrides[get_dispatcher] = lambda: failing

    res = await _subscribe(client)
    await failing.drain()

    assert res.status_code == 200
    assert res.json()["delivery"] == "failed"
    assert "verificationUrl" not in res.json()

    admin = await client.get(
        "/api/admin/subscriptions", params={"token": "test-admin-secret"},
    )
    assert admin.json()["total"] == 1


async def test_live_mode_omits_verification_url(client):
    mailer = RecordingLiveMailer()
    live = NotificationDispatcher(
        mailer, owner_email="owner@example.com", site_name="Test Site",
    )
    app.dependency_overrides[get_dispatcher] = lambda: live

    res = await _subscribe(client)
    await live.drain()

    assert res.json()["delivery"] == "sent"
    assert "verificationUrl" not in res.json()
    assert mailer.sent[0][0] == "user@example.com"


async def test_frontend_url_used_for_links(client, test_settings):
    test_settings.frontend_url = "https://launch.example/"
    body = (await _subscribe(client)).json()
    assert body["verificationUrl"].startswith("https://launch.example/api/verify?token=")


async def test_oversized_body_rejected(client):
    res = await client.post(
        "/api/subscribe", content=b'{"email": "' + b"a" * 20_000 + b'"}',
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 413
    assert res.json()["code"] == "PAYLOAD_TOO_LARGE"


async def _chunks(payload: bytes, size: int = 1024):
    for start in range(0, len(payload), size):
        yield payload[start:start + size]


async def test_oversized_chunked_body_rejected(client):
    payload = b'{"email": "' + b"a" * 50_000 + b'@example.com"}'

    res = await client.post(
        "/api/subscribe", content=_chunks(payload),
        headers={"content-type": "application/json"},
    )

    assert res.status_code == 413
    assert res.json() == {"error": "Payload too large", "code": "PAYLOAD_TOO_LARGE"}


async def test_small_chunked_body_accepted(client):
    res = await client.post(
        "/api/subscribe", content=_chunks(b'{"email": "user@example.com"}', size=8),
        headers={"content-type": "application/json"},
    )
    assert res.status_code == 200


# ─── verify ─────────────────────────────────────────────────────


async def test_verify_without_token_is_400_html(client):
    res = await client.get("/api/verify")
    assert res.status_code == 400
    assert res.headers["content-type"].startswith("text/html")
    assert "Missing verification token" in res.text


async def test_verify_unknown_token_is_404_html(client):
    res = await client.get("/api/verify", params={"token": "nope"})
    assert res.status_code == 404
    assert "Token Not Found" in res.text


async def test_verify_twice_is_idempotent(client):
    token = _token((await _subscribe(client)).json())
    await client.get("/api/verify", params={"token": token})

    res = await client.get("/api/verify", params={"token": token})

    assert res.status_code == 200
    assert "already confirmed" in res.text
    admin = await client.get(
        "/api/admin/subscriptions", params={"token": "test-admin-secret"},
    )
    assert admin.json()["verified"] == 1


async def test_verify_unexpected_failure_is_500_html(client):
    class BrokenService:
        async def verify(self, token):
            raise RuntimeError("db down")

    app.dependency_overrides[get_subscription_service] = lambda: BrokenService()

    res = await client.get("/api/verify", params={"token": "anything"})

    assert res.status_code == 500
    assert res.headers["content-type"].startswith("text/html")
    assert "db down" not in res.text
