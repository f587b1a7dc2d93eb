"""
Telegram Bot API notifications for landing page contacts
"""

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

from ... import config
from ...errors import bad_gateway, service_unavailable
from .schemas import LandingContact

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"

# Legacy Markdown parse mode only treats these as entity markers
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(value: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", value)


def format_contact_message(data: LandingContact, now: datetime) -> str:
    return "\n".join(
        [
            "🏥 *New Clinic Contacted*",
            "",
            f"📌 *Name:* {escape_markdown(data.clinicName)}",
            f"📞 *Phone:* {escape_markdown(data.phoneNumber)}",
            "",
            f"🕐 {now.strftime('%d.%m.%Y %H.%M')} da yubordi",
        ]
    )


def send_clinic_contact(data: LandingContact) -> None:
    """Post the contact to the configured Telegram group as a bot message"""
    token = config.TELEGRAM_BOT_TOKEN
    chat_id = config.TELEGRAM_GROUP_CHAT_ID
    if not token or not chat_id:
        logger.warning("⚠️ TELEGRAM_BOT_TOKEN or TELEGRAM_GROUP_CHAT_ID not configured")
        raise service_unavailable("Contact notifications are not configured")

    text = format_contact_message(data, datetime.now(ZoneInfo(config.CLINIC_TIMEZONE)))
    try:
        response = httpx.post(
            f"{TELEGRAM_API}/bot{token}/sendMessage",
            json={"chat_id": chat_id, "text": text, "parse_mode": "Markdown"},
            timeout=10.0,
        )
    except httpx.HTTPError as e:
        logger.error(f"❌ Telegram request failed: {e}")
        raise bad_gateway("Failed to send notification") from e

    if response.status_code != 200:
        logger.error(f"❌ Telegram API error: {response.status_code} {response.text}")
        raise bad_gateway("Failed to send notification")

    logger.info("📨 Landing contact forwarded to Telegram")
