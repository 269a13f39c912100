"""Factory for the outbound notifier."""

from tour_forms.adapters.notify.base import AbstractNotifier
from tour_forms.adapters.notify.telegram import TelegramNotifier
from tour_forms.core.config import settings


def create_notifier() -> AbstractNotifier:
    """Build the Telegram notifier from settings.

    Missing credentials are not an error here: the notifier reports a soft
    failure on each send so submissions keep working without Telegram.
    """
    return TelegramNotifier(
        bot_token=settings.telegram.bot_token,
        chat_id=settings.telegram.chat_id,
        api_base_url=settings.telegram.api_base_url,
        parse_mode=settings.telegram.parse_mode or None,
        timeout_seconds=settings.telegram.timeout_seconds,
    )
