"""Notification content for completed checkouts.

Pure functions: field extraction from a CheckoutSession, and the two HTML
emails sent per sale. Customer-supplied values are HTML-escaped.
"""

import datetime as dt
from decimal import Decimal
from html import escape
from zoneinfo import ZoneInfo

from relay.models.checkout import CheckoutSession, NotificationMessage, SaleDetails

DEFAULT_CUSTOMER_NAME = "Friend"

DOWNLOAD_SUBJECT = "Copatcher Download - Welcome to the Empire! 👑"
SALE_SUBJECT = "🎉 CHA-CHING! New Copatcher Sale! 💰"

_CENTS = Decimal("0.01")


def format_amount(amount_total: int) -> str:
    """Format a minor-unit amount with two decimals (4999 -> "49.99")."""
    return str((Decimal(amount_total) / 100).quantize(_CENTS))


def format_payment_date(created: int, tz: ZoneInfo) -> str:
    """Render unix seconds in the Danish numeric style, e.g. "14.11.2023 23.13.20".

    Day and month are not zero-padded; the time is.
    """
    moment = dt.datetime.fromtimestamp(created, tz=tz)
    return f"{moment.day}.{moment.month}.{moment.year} {moment:%H.%M.%S}"


def extract_sale_details(session: CheckoutSession, tz: ZoneInfo) -> SaleDetails:
    """Build the formatted sale fields for a session.

    The caller must have checked that the session carries a customer email.
    """
    email = session.customer_email
    if not email:
        raise ValueError("checkout session has no customer email")

    return SaleDetails(
        customer_email=email,
        customer_name=session.customer_name or DEFAULT_CUSTOMER_NAME,
        amount_paid=format_amount(session.amount_total),
        currency=session.currency.upper(),
        payment_date=format_payment_date(session.created, tz),
    )


def build_download_email(
    *,
    email: str,
    name: str,
    download_url: str,
    sender: str,
    reply_to: str | None = None,
) -> NotificationMessage:
    """Customer email with the download link."""
    html = f"""
      <h1>Welcome to the Empire, {escape(name)}! 👑</h1>
      <p>Copat here! Thanks for purchasing Copatcher!</p>

      <div style="text-align: center; margin: 30px 0;">
        <a href="{escape(download_url, quote=True)}"
           style="background: linear-gradient(45deg, #58a6ff, #00d2ff);
                  color: white; padding: 15px 30px;
                  text-decoration: none; border-radius: 10px;
                  font-weight: bold; font-size: 18px;">
          🔥 Download Copatcher Now 🔥
        </a>
      </div>

      <p>You're now ready for fearless coding! Questions? Just reply to this email and Steffen can help you out.</p>
      <p>Welcome to precision. Welcome to fearless development. Welcome to the empire.</p>

      <p>- Copat 🤖<br><em>Your special friend</em></p>
    """
    return NotificationMessage(
        to=email,
        sender=sender,
        reply_to=reply_to,
        subject=DOWNLOAD_SUBJECT,
        html=html,
    )


def build_sale_notification(
    sale: SaleDetails,
    *,
    sender: str,
    operator: str,
) -> NotificationMessage:
    """Operator alert with the sale details."""
    html = f"""
      <div style="background: linear-gradient(45deg, #0e1117, #1e2a3a); color: #e0e0e0; padding: 30px; border-radius: 15px; font-family: Arial, sans-serif;">
        <h1 style="color: #ffd700; text-align: center; margin-bottom: 20px;">
          🎉 BINGELING! NEW SALE! 🎉
        </h1>

        <div style="background: rgba(255, 215, 0, 0.1); border: 2px solid #ffd700; border-radius: 10px; padding: 20px; margin: 20px 0;">
          <h2 style="color: #58a6ff; margin-top: 0;">💰 Sale Details:</h2>
          <p><strong>Customer:</strong> {escape(sale.customer_name)}</p>
          <p><strong>Email:</strong> {escape(sale.customer_email)}</p>
          <p><strong>Amount:</strong> {sale.amount_paid} {escape(sale.currency)}</p>
          <p><strong>Date:</strong> {sale.payment_date}</p>
        </div>

        <div style="background: rgba(62, 214, 181, 0.1); border: 2px solid #3ed6b5; border-radius: 10px; padding: 20px; margin: 20px 0;">
          <h3 style="color: #3ed6b5; margin-top: 0;">🤖 Automatic Actions Completed:</h3>
          <p>✅ Download email sent to customer</p>
          <p>✅ Customer added to the empire</p>
          <p>✅ Copat is happy</p>
        </div>

        <div style="text-align: center; margin: 30px 0;">
          <p style="font-size: 24px; margin: 0;">🚀 ANOTHER HAPPY COPATCHER USER! 🚀</p>
          <p style="color: #ffd700; font-style: italic; margin: 10px 0;">The empire grows stronger...</p>
        </div>
      </div>
    """
    return NotificationMessage(
        to=operator,
        sender=sender,
        subject=SALE_SUBJECT,
        html=html,
    )
