"""告警模块"""

from .base import BaseAlerter
from .webhook_alerter import WebhookAlerter
from .email_alerter import EmailAlerter
from .dispatcher import AlertDispatcher, create_alerters

__all__ = [
    'BaseAlerter',
    'WebhookAlerter',
    'EmailAlerter',
    'AlertDispatcher',
    'create_alerters'
]
