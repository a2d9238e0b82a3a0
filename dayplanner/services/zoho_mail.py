import logging
from typing import Optional
from urllib.parse import urlencode

import requests

from dayplanner import config
from dayplanner.services import email_templates

logger = logging.getLogger(__name__)


class ZohoMailError(Exception):
    pass


class ZohoMailService:
    """
    Sends transactional email through the Zoho Mail REST API.

    A fresh access token is obtained from the long-lived refresh token on every
    send. Each message gets exactly one attempt; failures are logged and
    reported as False.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        from_email: Optional[str] = None,
        accounts_url: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client_id = client_id or config.ZOHO_CLIENT_ID
        self.client_secret = client_secret or config.ZOHO_CLIENT_SECRET
        self.refresh_token = refresh_token or config.ZOHO_REFRESH_TOKEN
        self.from_email = from_email or config.ZOHO_FROM_EMAIL
        self.accounts_url = (accounts_url or config.ZOHO_ACCOUNTS_URL).rstrip("/")
        self.api_url = api_url or config.ZOHO_MAIL_API_URL
        if not self.api_url.endswith("/"):
            self.api_url += "/"
        self.timeout = timeout or config.ZOHO_TIMEOUT
        # Reason for the most recent failed send, cleared on success
        self.last_error: Optional[str] = None

    @property
    def token_url(self) -> str:
        return f"{self.accounts_url}/oauth/v2/token"

    def get_access_token(self) -> str:
        data = {
            "refresh_token": self.refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        }
        resp = requests.post(self.token_url, data=data, timeout=self.timeout)
        if not resp.ok:
            raise ZohoMailError(f"Failed to get access token: {resp.text}")
        access_token = resp.json().get("access_token")
        if not access_token:
            raise ZohoMailError(f"Failed to get access token: {resp.text}")
        return access_token

    def send_email(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        try:
            access_token = self.get_access_token()
            payload = {
                "fromAddress": self.from_email,
                "toAddress": to_email,
                "subject": subject,
                "content": html_content,
                "contentType": "html",
            }
            if text_content:
                payload["textContent"] = text_content
            resp = requests.post(
                f"{self.api_url}accounts/self/messages",
                json=payload,
                headers={"Authorization": f"Zoho-oauthtoken {access_token}"},
                timeout=self.timeout,
            )
            if not resp.ok:
                raise ZohoMailError(f"Failed to send email: {resp.text}")
        except (requests.RequestException, ZohoMailError, ValueError) as e:
            logger.error("Zoho Mail API error sending %r to %s (%s): %s", subject, to_email, to_name, e)
            self.last_error = str(e)
            return False
        self.last_error = None
        logger.info("Email sent via Zoho Mail to %s: %s", to_email, subject)
        return True

    def send_verification_email(self, user, verification_url: str) -> bool:
        return self.send_email(
            user.email,
            user.name,
            f"Verify Your Email Address - {config.APP_NAME}",
            email_templates.verification_email(user.name, verification_url),
        )

    def send_password_reset_email(self, user, reset_url: str) -> bool:
        return self.send_email(
            user.email,
            user.name,
            f"Reset Your Password - {config.APP_NAME}",
            email_templates.password_reset_email(user.name, reset_url),
        )

    def send_welcome_email(self, user) -> bool:
        return self.send_email(
            user.email,
            user.name,
            f"Welcome to {config.APP_NAME}!",
            email_templates.welcome_email(user.name),
        )

    # Operator flow for obtaining the refresh token

    def authorization_url(self, redirect_uri: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "scope": "ZohoMail.messages.CREATE,ZohoMail.accounts.READ",
            "access_type": "offline",
            "prompt": "consent",
            "redirect_uri": redirect_uri or config.ZOHO_REDIRECT_URI,
        }
        return f"{self.accounts_url}/oauth/v2/auth?{urlencode(params)}"

    def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> dict:
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": redirect_uri or config.ZOHO_REDIRECT_URI,
            "grant_type": "authorization_code",
        }
        try:
            resp = requests.post(self.token_url, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise ZohoMailError(f"Token exchange failed: {e}")
        if not resp.ok:
            raise ZohoMailError(f"Token exchange failed: {resp.text}")
        tokens = resp.json()
        if "error" in tokens:
            raise ZohoMailError(f"Token exchange failed: {tokens['error']}")
        return tokens


def get_mail_service() -> ZohoMailService:
    return ZohoMailService()
