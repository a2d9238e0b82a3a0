"""
HTML bodies for transactional emails.
"""

from html import escape

from dayplanner.config import APP_NAME, PASSWORD_RESET_TTL_MINUTES

PRIMARY_COLOR = "#2196F3"


def _layout(title: str, body: str, cta_url: str = None, cta_label: str = None) -> str:
    cta = ""
    if cta_url and cta_label:
        cta = f"""
        <p style="text-align:center;margin:32px 0;">
          <a href="{escape(cta_url)}"
             style="background:{PRIMARY_COLOR};color:#ffffff;padding:14px 32px;border-radius:6px;text-decoration:none;font-weight:600;">
            {escape(cta_label)}
          </a>
        </p>
        <p style="font-size:12px;color:#64748b;">If the button does not work, copy this link into your browser:<br>{escape(cta_url)}</p>
        """
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family:Arial,sans-serif;background:#f8fafc;padding:24px;">
    <div style="max-width:560px;margin:0 auto;background:#ffffff;border-radius:8px;padding:32px;">
      <h2 style="color:#0f172a;">{escape(title)}</h2>
      {body}
      {cta}
      <p style="color:#334155;">Best regards,<br>{escape(APP_NAME)} Team</p>
    </div>
  </body>
</html>"""


def verification_email(name: str, verification_url: str) -> str:
    body = f"""
      <p>Hello {escape(name)},</p>
      <p>Thank you for registering! Please verify your email address to activate your account.</p>
    """
    return _layout("Verify your email address", body, verification_url, "Verify Email")


def password_reset_email(name: str, reset_url: str) -> str:
    body = f"""
      <p>Hello {escape(name)},</p>
      <p>You are receiving this email because we received a password reset request for your account.</p>
      <p>This password reset link will expire in {PASSWORD_RESET_TTL_MINUTES} minutes.</p>
      <p>If you did not request a password reset, no further action is required.</p>
    """
    return _layout("Reset your password", body, reset_url, "Reset Password")


def welcome_email(name: str) -> str:
    body = f"""
      <p>Hello {escape(name)},</p>
      <p>Your email is verified and your {escape(APP_NAME)} account is ready. Start planning your day!</p>
    """
    return _layout(f"Welcome to {APP_NAME}!", body)
