from urllib.parse import parse_qs, urlsplit

import pytest

from dayplanner.core import security
from dayplanner.core.security import email_hash, make_verification_signature
from dayplanner.models.user import User

from conftest import API, PASSWORD


def link_path(url):
    parts = urlsplit(url)
    return f"{parts.path}?{parts.query}"


async def register(client, mailer, email="new@example.com"):
    response = await client.post(f"{API}/register", json={
        "name": "Test User",
        "email": email,
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
    })
    assert response.status_code == 201
    return link_path(mailer.last("verification").url)


def redirect_query(response):
    parts = urlsplit(response.headers["location"])
    return parts.path, {key: values[0] for key, values in parse_qs(parts.query).items()}


@pytest.mark.asyncio
async def test_verification_link_verifies_once(client, session_for_tests, mailer):
    path = await register(client, mailer)

    response = await client.get(path)
    assert response.status_code == 302
    location, query = redirect_query(response)
    assert location == "/email-verified"
    assert query["message"] == "Email verified successfully. You can now log in."

    user = session_for_tests.query(User).filter(User.email == "new@example.com").one()
    verified_at = user.email_verified_at
    assert verified_at is not None
    assert mailer.last("welcome").to_email == "new@example.com"

    # login now allowed
    response = await client.post(f"{API}/login", json={"email": "new@example.com", "password": PASSWORD})
    assert response.status_code == 200

    # second click is informational and leaves the timestamp alone
    response = await client.get(path)
    assert response.status_code == 302
    location, query = redirect_query(response)
    assert location == "/email-verified"
    assert query["message"] == "Email already verified. You can now log in."
    session_for_tests.expire_all()
    assert session_for_tests.get(User, user.id).email_verified_at == verified_at


@pytest.mark.asyncio
async def test_tampered_hash_is_rejected(client, session_for_tests, mailer):
    await register(client, mailer)
    user = session_for_tests.query(User).filter(User.email == "new@example.com").one()
    forged_hash = email_hash("someone-else@example.com")
    signature = make_verification_signature(user.id, forged_hash)

    response = await client.get(f"{API}/email/verify/{user.id}/{forged_hash}?signature={signature}")

    assert response.status_code == 302
    location, query = redirect_query(response)
    assert location == "/login"
    assert query["error"] == "Invalid verification link."
    session_for_tests.expire_all()
    assert session_for_tests.get(User, user.id).email_verified_at is None


@pytest.mark.asyncio
async def test_bad_or_missing_signature_is_rejected(client, session_for_tests, mailer):
    await register(client, mailer)
    user = session_for_tests.query(User).filter(User.email == "new@example.com").one()
    hash_value = email_hash(user.email)

    for query in ("", "?signature=garbage"):
        response = await client.get(f"{API}/email/verify/{user.id}/{hash_value}{query}")
        assert response.status_code == 302
        assert redirect_query(response)[0] == "/login"

    # a signature for a different user id does not transfer
    other_signature = make_verification_signature(user.id + 1, hash_value)
    response = await client.get(f"{API}/email/verify/{user.id}/{hash_value}?signature={other_signature}")
    assert redirect_query(response)[0] == "/login"


@pytest.mark.asyncio
async def test_unknown_user_is_rejected(client):
    hash_value = email_hash("ghost@example.com")
    signature = make_verification_signature(999, hash_value)

    response = await client.get(f"{API}/email/verify/999/{hash_value}?signature={signature}")

    assert response.status_code == 302
    assert redirect_query(response)[0] == "/login"


@pytest.mark.asyncio
async def test_expired_link_is_rejected(client, session_for_tests, mailer, monkeypatch):
    path = await register(client, mailer)
    monkeypatch.setattr(security, "EMAIL_VERIFY_TTL_MINUTES", -1)

    response = await client.get(path)

    assert response.status_code == 302
    assert redirect_query(response)[0] == "/login"
    user = session_for_tests.query(User).filter(User.email == "new@example.com").one()
    assert user.email_verified_at is None


@pytest.mark.asyncio
async def test_verified_page_escapes_message(client):
    response = await client.get("/email-verified", params={"message": "<script>alert(1)</script>"})

    assert response.status_code == 200
    assert "<script>alert(1)</script>" not in response.text
    assert "&lt;script&gt;" in response.text
