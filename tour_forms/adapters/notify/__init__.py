"""Notifier adapter layer - abstracts over outbound message transports."""

from tour_forms.adapters.notify.base import AbstractNotifier, NotifierResponse
from tour_forms.adapters.notify.factory import create_notifier
from tour_forms.adapters.notify.telegram import TelegramNotifier

__all__ = [
    "AbstractNotifier",
    "NotifierResponse",
    "TelegramNotifier",
    "create_notifier",
]
