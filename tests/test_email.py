import pytest

import routers.email as email_router

ORDER_DETAILS = {
    "subtotal": 100,
    "shippingCost": 10,
    "discount": {"type": "percentage", "value": 20},
    "items": [
        {"product": {"title": "Tee"}, "variant": {"name": "Large"}, "quantity": 2, "subtotal": 60},
        {"product": {"title": "Mug"}, "quantity": 1, "subtotal": 40},
    ],
}


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def _send(to_addr, subject, html, text=None, **kwargs):
        sent.append({"to": to_addr, "subject": subject, "html": html, "text": text})
        return True

    monkeypatch.setattr(email_router, "send_email_smtp", _send)
    return sent


def _payload(**overrides):
    payload = {
        "email": "ngozi@example.com",
        "firstName": "Ngozi",
        "lastName": "Okafor",
        "orderId": "abc123",
        "status": "SHIPPED",
        "orderDetails": ORDER_DETAILS,
    }
    payload.update(overrides)
    return payload


def test_order_status_email_is_rendered_and_sent(client, outbox):
    r = client.post("/api/email", json=_payload())

    assert r.status_code == 200
    assert r.json() == {"success": True}
    msg = outbox[0]
    assert msg["to"] == "ngozi@example.com"
    assert msg["subject"] == "Order #abc123 - Shipped"
    assert "Hi Ngozi Okafor" in msg["html"]
    assert "Tee (Large)" in msg["html"]
    assert "90.00" in msg["html"]
    assert msg["text"] == "Your order has been shipped and is on its way!"


def test_unknown_status_gets_generic_message(client, outbox):
    client.post("/api/email", json=_payload(status="ON_HOLD"))
    assert outbox[0]["text"] == "Your order status has been updated to: ON_HOLD"


def test_missing_fields(client, outbox):
    r = client.post("/api/email", json=_payload(orderId=None))
    assert r.status_code == 400
    assert r.json() == {"error": "Missing required fields"}
    assert outbox == []


def test_send_failure(client, monkeypatch):
    monkeypatch.setattr(email_router, "send_email_smtp", lambda *a, **k: False)
    r = client.post("/api/email", json=_payload())
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to send email"}


def test_email_totals():
    totals = email_router._email_totals({"subtotal": 50, "shippingCost": 5, "discount": {"type": "free_shipping"}})
    assert totals == {"subtotal": 50.0, "discount_amount": 5.0, "shipping_cost": 5.0, "total": 50}


def test_smtp_not_configured(monkeypatch):
    import utils.emailing as emailing

    monkeypatch.setattr(emailing, "SMTP_HOST", "")
    assert emailing.send_email_smtp("a@example.com", "Hi", "<p>Hi</p>") is False


def test_smtp_send(monkeypatch):
    import utils.emailing as emailing

    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            pass

        def login(self, user, password):
            pass

        def sendmail(self, sender, recipients, body):
            sent.append((sender, recipients, body))

    monkeypatch.setattr(emailing, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(emailing, "MAIL_FROM", "orders@example.com")
    monkeypatch.setattr(emailing.smtplib, "SMTP", FakeSMTP)

    assert emailing.send_email_smtp("a@example.com", "Order update", "<p>Hi</p>") is True
    sender, recipients, body = sent[0]
    assert sender == "orders@example.com"
    assert recipients == ["a@example.com"]
    assert "Subject: Order update" in body


def test_money_filter():
    from utils.emailing import format_money

    assert format_money(1234.5).endswith("1,234.50")
    assert format_money(None).endswith("0.00")
