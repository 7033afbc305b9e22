from __future__ import annotations

from doorlist.notifications.base import EmailSender, SendResult, SmsSender, normalize_phone

__all__ = ["EmailSender", "SmsSender", "SendResult", "normalize_phone"]
