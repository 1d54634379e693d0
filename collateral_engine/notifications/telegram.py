"""Telegram notification service."""
import html
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


def format_html(message: str, subject: str = "") -> str:
    """Render a plain monitor message as Telegram HTML.

    The subject and the first line become bold headings and ``Label: value``
    lines get their value in ``<code>``. Everything else is escaped as-is.
    """
    lines = message.split("\n")
    rendered: list[str] = []
    for i, line in enumerate(lines):
        label, sep, value = line.partition(": ")
        if i == 0 and line:
            rendered.append(f"<b>{html.escape(line)}</b>")
        elif sep and value:
            rendered.append(f"{html.escape(label)}: <code>{html.escape(value)}</code>")
        else:
            rendered.append(html.escape(line))

    text = "\n".join(rendered)
    if subject:
        text = f"<b>{html.escape(subject)}</b>\n\n{text}"
    if len(text) > MAX_MESSAGE_LENGTH:
        text = _clip(message)
    return text


def _clip(message: str) -> str:
    """Plain escaped text cut to fit, never splitting an entity."""
    limit = MAX_MESSAGE_LENGTH - 1
    clipped = message[:limit]
    while len(html.escape(clipped)) > limit:
        clipped = clipped[:-16]
    return html.escape(clipped) + "…"


class TelegramNotifier:
    """Send liquidation alerts and account health logs via Telegram bots."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    async def _post(self, text: str, bot_token: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(url, json=payload) as response:
                if response.status != 200:
                    logger.error("Telegram rejected message: HTTP %s", response.status)
                    return False
                return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Liquidation and low-health alerts go to the unmuted alert bot."""
        sent = await self._post(format_html(message, subject), self.alert_bot_token, silent=False)
        if sent:
            logger.info("Telegram alert sent: %s", subject or message.split("\n", 1)[0])
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        sent = await self._post(format_html(message), self.log_bot_token, silent=silent)
        if sent:
            logger.debug("Telegram log sent")
        return sent
