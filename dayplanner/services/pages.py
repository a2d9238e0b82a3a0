"""
Browser pages for the links sent by email.
"""

from html import escape
from typing import Dict, List, Optional

from dayplanner.config import APP_NAME

STYLE = """
  body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background: #f1f5f9; margin: 0;
         min-height: 100vh; display: flex; align-items: center; justify-content: center; }
  .card { background: #ffffff; border-radius: 16px; box-shadow: 0 20px 40px rgba(0,0,0,0.08);
          padding: 40px; max-width: 440px; width: 100%; }
  h1 { font-size: 24px; color: #0f172a; margin-top: 0; }
  .alert { border-radius: 8px; padding: 12px 16px; margin-bottom: 16px; }
  .alert-error { background: #fee2e2; color: #991b1b; }
  .alert-success { background: #dcfce7; color: #166534; }
  label { display: block; font-weight: 600; margin: 12px 0 4px; color: #334155; }
  input { width: 100%; box-sizing: border-box; padding: 10px 12px; border: 1px solid #cbd5e1; border-radius: 8px; }
  .field-error { color: #b91c1c; font-size: 13px; margin-top: 4px; }
  button { margin-top: 20px; width: 100%; padding: 12px; border: none; border-radius: 24px;
           background: #2196F3; color: #ffffff; font-weight: 600; cursor: pointer; }
"""


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)} - {escape(APP_NAME)}</title>
  <style>{STYLE}</style>
</head>
<body>
  <div class="card">
{body}
  </div>
</body>
</html>"""


def _alert(message: Optional[str], kind: str) -> str:
    if not message:
        return ""
    return f'    <div class="alert alert-{kind}">{escape(message)}</div>\n'


def login_page(error: Optional[str] = None) -> str:
    body = f"""    <h1>{escape(APP_NAME)}</h1>
{_alert(error, "error")}    <p>Open the {escape(APP_NAME)} app to sign in to your account.</p>"""
    return _page("Login", body)


def email_verified_page(message: Optional[str] = None) -> str:
    message = message or "Email verified successfully. You can now log in."
    body = f"""    <h1>Email Verified</h1>
{_alert(message, "success")}    <p>You can now log in to your account and access all features.</p>"""
    return _page("Email Verified", body)


def reset_error_page(message: str) -> str:
    body = f"""    <h1>Reset Password</h1>
{_alert(message, "error")}    <p>Request a new password reset link from the app.</p>"""
    return _page("Reset Password", body)


def reset_form_page(
    token: str,
    email: str,
    error: Optional[str] = None,
    errors: Optional[Dict[str, List[str]]] = None,
) -> str:
    errors = errors or {}

    def field_errors(name: str) -> str:
        return "".join(f'<div class="field-error">{escape(msg)}</div>' for msg in errors.get(name, []))

    body = f"""    <h1>Reset Password</h1>
{_alert(error, "error")}    <form method="post" action="/reset-password">
      <input type="hidden" name="token" value="{escape(token)}">
      <label for="email">Email</label>
      <input id="email" type="email" name="email" value="{escape(email)}" required>
      {field_errors("email")}
      <label for="password">New password</label>
      <input id="password" type="password" name="password" minlength="8" required>
      {field_errors("password")}
      <label for="password_confirmation">Confirm new password</label>
      <input id="password_confirmation" type="password" name="password_confirmation" minlength="8" required>
      {field_errors("password_confirmation")}
      {field_errors("token")}
      <button type="submit">Reset Password</button>
    </form>"""
    return _page("Reset Password", body)


def reset_success_page() -> str:
    body = f"""    <h1>Password Reset</h1>
{_alert("Your password has been reset successfully! You can now log in with your new password.", "success")}"""
    return _page("Password Reset", body)
