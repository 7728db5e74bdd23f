"""Verification Pages - small HTML documents returned by GET /api/verify.

Invariants:
    - Subscriber email is HTML-escaped
    - Every page links back to the landing page
"""

from html import escape

_ERROR_PAGE = (
    '<html><body style="font-family:system-ui;margin:40px;">'
    "<h2>{title}</h2><p>{body}</p>"
    '<p><a href="/">Back to home</a></p></body></html>'
)


def render_error_page(title: str, body: str) -> str:
    return _ERROR_PAGE.format(title=escape(title), body=escape(body))


def render_verified_page(
    email: str, site_name: str, already_verified: bool = False,
) -> str:
    """Confirmation view. Re-verification renders the same page with a note."""
    note = (
        "<p>This address was already confirmed, nothing else to do.</p>"
        if already_verified else ""
    )
    site = escape(site_name)
    return f"""<html>
  <head>
    <meta charset="utf-8">
    <title>Email verified - {site}</title>
  </head>
  <body style="font-family: 'Segoe UI', Roboto, sans-serif; color: #333; margin: 40px;">
    <div style="max-width: 500px; margin: 0 auto; text-align: center;">
      <h2 style="color: #ff6b35;">Email Verified!</h2>
      <p><strong>{escape(email)}</strong> is now verified.</p>
      {note}
      <p>Thanks for joining the {site} community! We'll let you know when we launch.</p>
      <a href="/" style="display: inline-block; padding: 12px 24px; background: #ff6b35; color: white; text-decoration: none; border-radius: 8px; margin-top: 20px;">Return to {site}</a>
    </div>
  </body>
</html>
"""
