from .api import MailClient
from .messages import winner_notification

__all__ = ["MailClient", "winner_notification"]
