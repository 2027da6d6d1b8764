from .dispatcher import NotificationDispatcher
from .mailer import SmtpMailTransport

__all__ = ["NotificationDispatcher", "SmtpMailTransport"]
