"""
WhatsApp Notification Transport
===============================

Sends WhatsApp text messages through one of two gateways:

- ``fonnte``: https://fonnte.com, token in the ``Authorization`` header.
- ``meta``: WhatsApp Business Cloud API, bearer token, sender phone-number id.

Every outcome is reported as a `NotificationResult`; this module never raises
for transport problems. Callers treat ``success=False`` as informational.

Environment contract (from `settings`)
--------------------------------------
WHATSAPP_ENABLED, WHATSAPP_PROVIDER, WHATSAPP_API_TOKEN, WHATSAPP_SENDER,
WHATSAPP_TIMEOUT_SECONDS
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import httpx

from simta.database.config.config import settings

logger = logging.getLogger(__name__)

FONNTE_URL = "https://api.fonnte.com/send"
META_URL_TEMPLATE = "https://graph.facebook.com/v18.0/{sender}/messages"


class NotificationKind(str, Enum):
    BIMBINGAN_BARU = "bimbingan_baru"
    """New submission, sent to the advisor."""
    FEEDBACK = "feedback"
    """Review outcome, sent to the student."""


@dataclass
class NotificationResult:
    success: bool
    reason: str | None = None
    error: str | None = None
    data: Any = field(default=None, repr=False)


class Notifier(Protocol):
    """Outbound notification channel consumed by the workflow."""

    def notify(self, phone: str, kind: NotificationKind, **context) -> NotificationResult:
        ...


_STATUS_EMOJI = {
    "ACC": "✅",
    "Revisi": "🔄",
    "Lanjut Bab": "📖",
}


def render_message(kind: NotificationKind, **context) -> str:
    """
    Build the message text for ``kind``.

    ``bimbingan_baru`` expects ``mahasiswa_nama`` and ``catatan``;
    ``feedback`` expects ``dosen_nama``, ``status`` (display label) and
    ``feedback``.
    """
    if kind is NotificationKind.BIMBINGAN_BARU:
        return (
            "📚 *SIMTA - Bimbingan Baru*\n\n"
            f"Mahasiswa: {context.get('mahasiswa_nama')}\n"
            f"Catatan: {context.get('catatan') or '-'}\n\n"
            "Silakan login ke SIMTA untuk review."
        )
    if kind is NotificationKind.FEEDBACK:
        status = context.get("status")
        feedback = context.get("feedback")
        return (
            f"{_STATUS_EMOJI.get(status, '📝')} *SIMTA - Feedback Bimbingan*\n\n"
            f"Dosen: {context.get('dosen_nama')}\n"
            f"Status: {status}\n"
            f"{f'Catatan: {feedback}' if feedback else ''}\n\n"
            "Login ke SIMTA untuk detail."
        )
    raise ValueError(f"Unknown notification kind: {kind}")


def normalize_phone(phone: str) -> str:
    """
    Normalize an Indonesian number to the ``62xxx`` form.

    >>> normalize_phone("0812-3456-789")
    '628123456789'
    """
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    if not digits.startswith("62"):
        digits = "62" + digits
    return digits


class WhatsAppNotifier:
    """
    `Notifier` backed by a WhatsApp gateway.

    Parameters
    ----------
    enabled, provider, api_token, sender, timeout
        Default to the values in `settings`.
    transport : httpx.BaseTransport | None
        Injected transport (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        enabled: bool | None = None,
        provider: str | None = None,
        api_token: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.enabled = settings.WHATSAPP_ENABLED if enabled is None else enabled
        self.provider = provider or settings.WHATSAPP_PROVIDER
        self.api_token = settings.WHATSAPP_API_TOKEN if api_token is None else api_token
        self.sender = settings.WHATSAPP_SENDER if sender is None else sender
        self.timeout = timeout or settings.WHATSAPP_TIMEOUT_SECONDS
        self._transport = transport

    def notify(self, phone: str, kind: NotificationKind, **context) -> NotificationResult:
        return self.send(phone, render_message(kind, **context))

    def send(self, phone: str, message: str) -> NotificationResult:
        """
        Send ``message`` to ``phone``.

        Returns
        -------
        NotificationResult
            ``reason`` is one of ``disabled``, ``no_token``, ``unknown_provider``
            or the gateway's own reason; ``error`` carries transport errors.
        """
        if not self.enabled:
            logger.info("[WhatsApp] Disabled - skipping notification")
            return NotificationResult(success=False, reason="disabled")

        if not self.api_token:
            logger.warning("[WhatsApp] No API token configured")
            return NotificationResult(success=False, reason="no_token")

        target = normalize_phone(phone)

        try:
            logger.info("[WhatsApp] Sending to %s via %s", target, self.provider)
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                if self.provider == "fonnte":
                    data = self._send_via_fonnte(client, target, message)
                elif self.provider == "meta":
                    data = self._send_via_meta(client, target, message)
                else:
                    logger.warning("[WhatsApp] Unknown provider: %s", self.provider)
                    return NotificationResult(success=False, reason="unknown_provider")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("[WhatsApp] Error sending message: %s", e)
            return NotificationResult(success=False, error=str(e))

        if self.provider == "fonnte" and isinstance(data, dict) and data.get("status") is False:
            logger.warning("[WhatsApp] Fonnte reported failure: %s", data.get("reason"))
            return NotificationResult(success=False, reason=data.get("reason") or "fonnte_error", data=data)

        logger.info("[WhatsApp] Sent successfully to %s", target)
        return NotificationResult(success=True, data=data)

    def _send_via_fonnte(self, client: httpx.Client, target: str, message: str):
        response = client.post(
            FONNTE_URL,
            json={"target": target, "message": message, "countryCode": "62"},
            headers={"Authorization": self.api_token},
        )
        response.raise_for_status()
        return response.json()

    def _send_via_meta(self, client: httpx.Client, target: str, message: str):
        response = client.post(
            META_URL_TEMPLATE.format(sender=self.sender),
            json={
                "messaging_product": "whatsapp",
                "recipient_type": "individual",
                "to": target,
                "type": "text",
                "text": {"preview_url": False, "body": message},
            },
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Content-Type": "application/json",
            },
        )
        response.raise_for_status()
        return response.json()
