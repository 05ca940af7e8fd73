import os
import smtplib
import uuid
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.config import SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, MAIL_FROM, APP_NAME, CURRENCY_SYMBOL, logger

_templates_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
_jinja_env = Environment(
    loader=FileSystemLoader(_templates_dir),
    autoescape=select_autoescape(["html", "xml"]),
)

EMAIL_BRAND_COLOR = os.getenv("EMAIL_BRAND_COLOR", "#111827")


def format_money(value) -> str:
    try:
        return f"{CURRENCY_SYMBOL}{float(value or 0):,.2f}"
    except (TypeError, ValueError):
        return f"{CURRENCY_SYMBOL}0.00"


_jinja_env.filters["money"] = format_money


def render_email(template_name: str, **context) -> str:
    values = {"app_name": APP_NAME, "brand_color": EMAIL_BRAND_COLOR}
    values.update(context)
    return _jinja_env.get_template(template_name).render(**values)


def _build_message(sender: str, to_addr: str, subject: str, html: str, text: str, reply_to: Optional[str]) -> MIMEMultipart:
    domain = sender.split("@")[-1].rstrip(">") if "@" in sender else "localhost"
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender if "<" in sender else f"{APP_NAME} <{sender}>"
    msg["To"] = to_addr
    msg["Message-ID"] = f"<{uuid.uuid4()}@{domain}>"
    msg["Date"] = datetime.utcnow().strftime("%a, %d %b %Y %H:%M:%S +0000")
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.attach(MIMEText(text, "plain", _charset="utf-8"))
    msg.attach(MIMEText(html or "", "html", _charset="utf-8"))
    return msg


def send_email_smtp(
    to_addr: str,
    subject: str,
    html: str,
    text: Optional[str] = None,
    from_addr: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> bool:
    """Send one multipart email. Returns False when SMTP is not configured or the send fails."""
    if not SMTP_HOST or not MAIL_FROM:
        logger.error("SMTP not configured; cannot send email")
        return False
    sender = (from_addr or MAIL_FROM).strip()
    msg = _build_message(
        sender,
        to_addr,
        subject,
        html,
        text or "Open this message in an HTML-capable email client.",
        reply_to,
    )
    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30) as server:
            server.starttls()
            if SMTP_USER:
                server.login(SMTP_USER, SMTP_PASS)
            server.sendmail(sender, [to_addr], msg.as_string())
        return True
    except Exception as ex:
        logger.exception(f"[email.smtp] send to={to_addr} failed: {ex}")
        return False
