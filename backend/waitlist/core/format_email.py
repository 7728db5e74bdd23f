"""Email Content - subject/text/html for verification mails and owner alerts.

Invariants:
    - Every message has a subject and a plain-text body; html is optional
    - User-supplied values are HTML-escaped before landing in html bodies
    - Pure string building, no IO
"""

from dataclasses import dataclass
from html import escape


@dataclass(frozen=True)
class MailContent:
    """Rendered message, transport agnostic."""
    subject: str
    text: str
    html: str | None = None


def format_verification_email(
    verify_url: str, site_name: str, ttl_hours: int = 24,
) -> MailContent:
    url = escape(verify_url, quote=True)
    site = escape(site_name)
    html = f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"></head>
  <body style="font-family: 'Segoe UI', Roboto, sans-serif; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
      <h1 style="color: #ff6b35; text-align: center;">{site}</h1>
      <div style="background: #f5f5f5; padding: 30px; border-radius: 10px; text-align: center;">
        <h2 style="margin-top: 0;">Verify Your Email</h2>
        <p>Thanks for joining the {site} interest list! To confirm your subscription, click the button below:</p>
        <a href="{url}" style="display: inline-block; margin: 20px 0; padding: 14px 32px; background: #ff6b35; color: white; text-decoration: none; border-radius: 8px; font-weight: 700;">Verify My Email</a>
        <p style="font-size: 12px; color: #999;">Or copy this link:<br><code>{url}</code></p>
        <p style="font-size: 12px; color: #999; margin-bottom: 0;">This link expires in {ttl_hours} hours.</p>
      </div>
      <p style="text-align: center; font-size: 12px; color: #999; margin-top: 40px;">You received this email because you signed up for {site} launch updates.</p>
    </div>
  </body>
</html>
"""
    text = (
        f"{site_name} - Verify Your Email\n\n"
        f"Thanks for joining {site_name}! To confirm your subscription, visit this link:\n"
        f"{verify_url}\n\n"
        f"This link expires in {ttl_hours} hours.\n"
    )
    return MailContent(
        subject=f"Verify your email - {site_name}", text=text, html=html,
    )


def format_new_interest_alert(
    email: str, site_name: str, is_new: bool,
) -> MailContent:
    kind = "New interest" if is_new else "Repeat sign-up"
    return MailContent(
        subject=f"{kind}: {email} - {site_name}",
        text=f"Email: {email}\nStatus: awaiting verification\n",
    )


def format_confirmed_alert(email: str, site_name: str) -> MailContent:
    return MailContent(
        subject=f"Subscriber confirmed: {email} - {site_name}",
        text=f"Email: {email}\nStatus: verified\n",
    )


def format_owner_message(
    email: str, message: str | None, site_name: str,
) -> MailContent:
    """Free-form note submitted through the notify endpoint."""
    return MailContent(
        subject=f"New interest: {email} - {site_name}",
        text=f"Email: {email}\nMessage: {message or '-'}\n",
    )
