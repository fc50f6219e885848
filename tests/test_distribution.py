"""Tests for bearer link distribution (email and messaging deep links)."""

import smtplib
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, unquote, urlsplit

import pytest

from src.core.errors import ValidationError
from src.schemas.bearer_link import SharedReport
from src.services.bearer_links import mint_link
from src.services.distribution import (
    build_emails,
    build_telegram_share_link,
    build_whatsapp_link,
    normalize_phone_number,
    send_emails,
    share_by_email,
    share_by_messaging,
)


@pytest.fixture
def report() -> SharedReport:
    return SharedReport(
        id="r1",
        title="Rapport",
        content="Weekly glucose summary",
        created_at=datetime(2026, 2, 27, 8, 30, tzinfo=UTC),
    )


@pytest.fixture
def link(report, now):
    return mint_link(report, access_code="A1B2C3", now=now)


@pytest.fixture
def smtp_settings():
    """Configure a fake SMTP relay for the duration of a test."""
    with (
        patch("src.services.distribution.settings.smtp_host", "smtp.example.com"),
        patch("src.services.distribution.settings.smtp_user", "mailer"),
        patch("src.services.distribution.settings.smtp_password", "hunter2"),
    ):
        yield


class TestBuildEmails:
    def test_link_and_code_travel_separately(self, link, report):
        link_mail, code_mail = build_emails(
            link, "dr.bernard@example.com", "Alice Martin", report
        )

        link_body = link_mail.get_content()
        code_body = code_mail.get_content()
        assert link.url in link_body
        assert link.access_code not in link_body
        assert link.access_code in code_body
        assert link.url not in code_body

    def test_headers(self, link, report):
        link_mail, code_mail = build_emails(
            link, "dr.bernard@example.com", "Alice Martin", report
        )

        for mail in (link_mail, code_mail):
            assert mail["To"] == "dr.bernard@example.com"
            assert "Alice Martin" in mail["Subject"]

    def test_link_mail_mentions_report_and_expiry(self, link, report):
        link_mail, _ = build_emails(link, "dr.bernard@example.com", "Alice", report)

        body = link_mail.get_content()
        assert "Rapport" in body
        assert "2026-02-27" in body
        assert link.expires_at.strftime("%Y-%m-%d") in body


class TestPhoneNumbers:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("+33 6 12 34 56 78", "33612345678"),
            ("(555) 123-4567", "5551234567"),
            ("06.12.34.56.78", "0612345678"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_phone_number(raw) == expected

    @pytest.mark.parametrize("raw", ["12345", "1" * 16, "+33 6 ab 34", "++3361234567"])
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValidationError):
            normalize_phone_number(raw)


class TestMessagingLinks:
    def test_whatsapp_link(self, link, report):
        url = build_whatsapp_link(link, "+33 6 12 34 56 78", "Alice Martin", report)

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://wa.me/33612345678"
        text = unquote(parts.query.removeprefix("text="))
        assert link.url in text
        assert "A1B2C3" in text
        assert "Rapport" in text

    def test_whatsapp_invalid_number(self, link, report):
        with pytest.raises(ValidationError):
            build_whatsapp_link(link, "12", "Alice", report)

    def test_telegram_link_omits_access_code(self, link, report):
        url = build_telegram_share_link(link, "Alice Martin", report)

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://t.me/share/url"
        params = parse_qs(parts.query)
        assert params["url"] == [link.url]
        assert "A1B2C3" not in params["text"][0]


class TestSendEmails:
    async def test_not_configured(self, link, report):
        messages = build_emails(link, "dr@example.com", "Alice", report)

        with (
            patch("src.services.distribution.settings.smtp_host", ""),
            patch("src.services.distribution.smtplib.SMTP") as smtp_cls,
        ):
            result = await send_emails(messages)

        assert result.success is False
        assert result.detail == "Email delivery is not configured"
        smtp_cls.assert_not_called()

    async def test_sends_every_message(self, link, report, smtp_settings):
        messages = build_emails(link, "dr@example.com", "Alice", report)
        server = MagicMock()

        with patch("src.services.distribution.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = server
            result = await send_emails(messages)

        assert result.success is True
        smtp_cls.assert_called_once()
        assert smtp_cls.call_args.args[0] == "smtp.example.com"
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "hunter2")
        assert server.send_message.call_count == 2

    async def test_smtp_failure_reported(self, link, report, smtp_settings):
        messages = build_emails(link, "dr@example.com", "Alice", report)

        with patch(
            "src.services.distribution.smtplib.SMTP",
            side_effect=smtplib.SMTPConnectError(421, "unavailable"),
        ):
            result = await send_emails(messages)

        assert result.success is False
        assert result.detail == "Email delivery failed"

    async def test_network_failure_reported(self, link, report, smtp_settings):
        messages = build_emails(link, "dr@example.com", "Alice", report)

        with patch(
            "src.services.distribution.smtplib.SMTP",
            side_effect=ConnectionRefusedError(),
        ):
            result = await send_emails(messages)

        assert result.success is False


class TestShareFacade:
    async def test_share_by_email_returns_link_when_delivery_fails(self, report):
        with patch("src.services.distribution.settings.smtp_host", ""):
            link, result = await share_by_email(
                report, "dr@example.com", "Alice", access_code="A1B2C3"
            )

        assert result.success is False
        assert link.access_code == "A1B2C3"
        assert "/shared-report?data=" in link.url

    def test_share_by_messaging(self, report):
        link, whatsapp, telegram = share_by_messaging(
            report, "+33 6 12 34 56 78", "Alice", access_code="A1B2C3"
        )

        assert whatsapp.startswith("https://wa.me/33612345678?text=")
        assert telegram.startswith("https://t.me/share/url?")
        assert link.access_code == "A1B2C3"

    def test_bad_number_mints_nothing(self, report):
        with patch("src.services.distribution.mint_link") as mint:
            with pytest.raises(ValidationError):
                share_by_messaging(report, "not a phone", "Alice")

        mint.assert_not_called()
