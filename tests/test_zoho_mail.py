import pytest
import requests

from dayplanner.services import zoho_mail
from dayplanner.services.zoho_mail import ZohoMailError, ZohoMailService

from fakes import FakeResponse


class RecordingPost:
    """Replaces requests.post; hands out queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def service():
    return ZohoMailService(
        client_id="client-id",
        client_secret="client-secret",
        refresh_token="refresh-token",
        from_email="noreply@example.com",
        accounts_url="https://accounts.example.com/",
        api_url="https://mail.example.com/api",
        timeout=5,
    )


def token_ok(value="access-1"):
    return FakeResponse(200, {"access_token": value, "expires_in": 3600})


def test_send_email_fetches_token_then_posts_message(service, monkeypatch):
    post = RecordingPost(token_ok(), FakeResponse(200, {"status": {"code": 200}}))
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    assert service.send_email("user@example.com", "User", "Hello", "<p>Hi</p>", "Hi") is True

    (token_url, token_kwargs), (message_url, message_kwargs) = post.calls
    assert token_url == "https://accounts.example.com/oauth/v2/token"
    assert token_kwargs["data"] == {
        "refresh_token": "refresh-token",
        "client_id": "client-id",
        "client_secret": "client-secret",
        "grant_type": "refresh_token",
    }
    assert message_url == "https://mail.example.com/api/accounts/self/messages"
    assert message_kwargs["headers"] == {"Authorization": "Zoho-oauthtoken access-1"}
    assert message_kwargs["json"] == {
        "fromAddress": "noreply@example.com",
        "toAddress": "user@example.com",
        "subject": "Hello",
        "content": "<p>Hi</p>",
        "contentType": "html",
        "textContent": "Hi",
    }
    assert message_kwargs["timeout"] == 5


def test_every_send_gets_a_fresh_access_token(service, monkeypatch):
    post = RecordingPost(token_ok("access-1"), FakeResponse(200), token_ok("access-2"), FakeResponse(200))
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    assert service.send_email("a@example.com", "A", "One", "<p>1</p>")
    assert service.send_email("b@example.com", "B", "Two", "<p>2</p>")

    urls = [url for url, _ in post.calls]
    assert urls.count(service.token_url) == 2
    assert post.calls[3][1]["headers"]["Authorization"] == "Zoho-oauthtoken access-2"


@pytest.mark.parametrize("token_response", [
    FakeResponse(400, {"error": "invalid_code"}),
    FakeResponse(200, {"error": "invalid_client"}),
])
def test_token_failure_skips_message_call(service, monkeypatch, token_response):
    post = RecordingPost(token_response)
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    assert service.send_email("user@example.com", "User", "Hello", "<p>Hi</p>") is False
    assert len(post.calls) == 1


def test_rejected_message_is_a_single_failed_attempt(service, monkeypatch):
    post = RecordingPost(token_ok(), FakeResponse(500, text="internal error"))
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    assert service.send_email("user@example.com", "User", "Hello", "<p>Hi</p>") is False
    assert len(post.calls) == 2


def test_network_error_returns_false(service, monkeypatch):
    post = RecordingPost(token_ok(), requests.ConnectionError("connection reset"))
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    assert service.send_email("user@example.com", "User", "Hello", "<p>Hi</p>") is False


class Recipient:
    name = "Ada <Admin>"
    email = "ada@example.com"


def test_templated_messages_escape_user_values(service, monkeypatch):
    post = RecordingPost(token_ok(), FakeResponse(200))
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    assert service.send_password_reset_email(Recipient(), "https://app.example.com/reset-password?token=abc&email=x")

    message = post.calls[1][1]["json"]
    assert message["toAddress"] == "ada@example.com"
    assert message["subject"].startswith("Reset Your Password")
    assert "Ada &lt;Admin&gt;" in message["content"]
    assert "token=abc&amp;email=x" in message["content"]


def test_authorization_url(service):
    url = service.authorization_url("https://app.example.com/callback")

    assert url.startswith("https://accounts.example.com/oauth/v2/auth?")
    assert "client_id=client-id" in url
    assert "access_type=offline" in url
    assert "redirect_uri=https%3A%2F%2Fapp.example.com%2Fcallback" in url


def test_exchange_code(service, monkeypatch):
    post = RecordingPost(FakeResponse(200, {"refresh_token": "r-1", "access_token": "a-1", "expires_in": 3600}))
    monkeypatch.setattr(zoho_mail.requests, "post", post)

    tokens = service.exchange_code("the-code", "https://app.example.com/callback")

    assert tokens["refresh_token"] == "r-1"
    assert post.calls[0][1]["data"]["grant_type"] == "authorization_code"
    assert post.calls[0][1]["data"]["code"] == "the-code"


@pytest.mark.parametrize("response", [
    FakeResponse(400, text="bad request"),
    FakeResponse(200, {"error": "invalid_code"}),
    requests.Timeout("timed out"),
])
def test_exchange_code_errors(service, monkeypatch, response):
    monkeypatch.setattr(zoho_mail.requests, "post", RecordingPost(response))

    with pytest.raises(ZohoMailError):
        service.exchange_code("the-code")


def test_last_error_tracks_the_latest_send(service, monkeypatch):
    post = RecordingPost(
        token_ok(), FakeResponse(503, text="service unavailable"),
        token_ok(), FakeResponse(200),
    )
    monkeypatch.setattr(zoho_mail.requests, "post", post)
    assert service.last_error is None

    assert service.send_email("user@example.com", "User", "Hello", "<p>Hi</p>") is False
    assert service.last_error == "Failed to send email: service unavailable"

    assert service.send_email("user@example.com", "User", "Hello", "<p>Hi</p>") is True
    assert service.last_error is None
