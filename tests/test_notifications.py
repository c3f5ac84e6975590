import logging
from dataclasses import replace

import httpx
import pytest
import respx

from ridefare.errors import DeliveryError
from ridefare.models.domain import ValidatedBooking
from ridefare.services.notifications.dispatcher import NotificationDispatcher
from ridefare.services.notifications.sendgrid_client import EmailMessage, SendGridClient

from conftest import RecordingMailer


@pytest.fixture
def booking() -> ValidatedBooking:
    return ValidatedBooking(
        name="Jean Dupont",
        phone="0612345678",
        pickup="10 rue de Rivoli, Paris",
        destination="Aéroport d'Orly",
        date="2026-03-14",
        time="14:30",
        service_type="premium",
        passengers="2",
        email="jean.dupont@example.com",
        notes="Deux valises",
        distance="18.4 km",
        duration="27 min",
        price="41.80 €",
    )


def _dispatcher(mailer, rate_table) -> NotificationDispatcher:
    return NotificationDispatcher(
        mailer=mailer,
        operator_email="operator@example.com",
        operator_phone="06 00 00 00 00",
        rate_table=rate_table,
    )


async def test_both_parties_are_notified(booking, rate_table):
    mailer = RecordingMailer()

    report = await _dispatcher(mailer, rate_table).dispatch(booking, "1700000000000")

    assert report.all_delivered
    sent = dict(mailer.sent)
    assert sent["operator"].to == "operator@example.com"
    assert sent["operator"].subject == "NOUVELLE RÉSERVATION - Jean Dupont - 2026-03-14 14:30"
    assert "Premium (2.00€/km)" in sent["operator"].text
    assert "Contactez le client au 0612345678" in sent["operator"].text
    assert sent["customer"].to == "jean.dupont@example.com"
    assert "06 00 00 00 00" in sent["customer"].text


async def test_operator_failure_does_not_block_customer(booking, rate_table, caplog):
    mailer = RecordingMailer(fail_channels={"operator"})

    with caplog.at_level(logging.WARNING, logger="ridefare.services.notifications.dispatcher"):
        report = await _dispatcher(mailer, rate_table).dispatch(booking, "42")

    assert report.operator.status == "failed"
    assert report.customer.status == "sent"
    assert [channel for channel, _ in mailer.sent] == ["customer"]
    assert "reservation 42" in caplog.text


async def test_customer_without_email_is_skipped(booking, rate_table):
    mailer = RecordingMailer()
    no_email = replace(booking, email="")

    report = await _dispatcher(mailer, rate_table).dispatch(no_email, "43")

    assert report.customer.status == "skipped"
    assert [channel for channel, _ in mailer.sent] == ["operator"]


async def test_notify_operator_requires_an_address(booking, rate_table):
    dispatcher = NotificationDispatcher(mailer=RecordingMailer(), rate_table=rate_table)
    dispatcher.operator_email = None
    with pytest.raises(DeliveryError):
        await dispatcher.notify_operator(booking)


async def test_self_test_reports_failure(rate_table):
    dispatcher = _dispatcher(RecordingMailer(fail_channels={"self-test"}), rate_table)
    assert await dispatcher.send_self_test() is False


class BrokenMailer:
    async def send(self, message, channel: str = "email") -> None:
        raise RuntimeError("unexpected mailer bug")


async def test_self_test_never_raises(rate_table, caplog):
    dispatcher = _dispatcher(BrokenMailer(), rate_table)

    with caplog.at_level(logging.ERROR, logger="ridefare.services.notifications.dispatcher"):
        assert await dispatcher.send_self_test() is False
    assert "Email self-test failed unexpectedly" in caplog.text


@respx.mock
async def test_sendgrid_client_posts_mail_send_payload():
    route = respx.post("https://api.sendgrid.com/v3/mail/send").mock(return_value=httpx.Response(202))
    client = SendGridClient(api_key="SG.test", sender="bookings@example.com", base_url="https://api.sendgrid.com")

    await client.send(EmailMessage(to="a@example.com", subject="Hi", text="plain", html="<p>rich</p>"))

    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer SG.test"
    body = httpx.Response(200, content=request.content).json()
    assert body["personalizations"] == [{"to": [{"email": "a@example.com"}]}]
    assert [part["type"] for part in body["content"]] == ["text/plain", "text/html"]


@respx.mock
async def test_sendgrid_rejection_raises_delivery_error():
    respx.post("https://api.sendgrid.com/v3/mail/send").mock(return_value=httpx.Response(401, text="unauthorized"))
    client = SendGridClient(api_key="SG.bad", sender="bookings@example.com", base_url="https://api.sendgrid.com")

    with pytest.raises(DeliveryError) as info:
        await client.send(EmailMessage(to="a@example.com", subject="Hi", text="plain"), channel="operator")
    assert info.value.channel == "operator"


async def test_sendgrid_without_credentials_raises_delivery_error(monkeypatch):
    from ridefare.config import settings

    monkeypatch.setattr(settings, "sendgrid_api_key", None)
    with pytest.raises(DeliveryError):
        await SendGridClient(sender="bookings@example.com").send(EmailMessage(to="a@example.com", subject="s", text="t"))
