from __future__ import annotations

import structlog

from doorlist.notifications.base import EmailSender, SendResult, SmsSender, normalize_phone

logger = structlog.get_logger(__name__)


class ConsoleEmailSender(EmailSender):
    """Local development backend: logs instead of delivering."""

    def send(self, to: str, subject: str, html_body: str) -> SendResult:
        logger.info("email_logged", to=to, subject=subject, size=len(html_body))
        return SendResult(success=True)


class ConsoleSmsSender(SmsSender):
    def __init__(self, default_country_code: str = "91") -> None:
        self._default_country_code = default_country_code

    def send(self, phone: str, template_vars: dict[str, str]) -> SendResult:
        mobile = normalize_phone(phone, self._default_country_code)
        if not mobile:
            return SendResult(success=False, error="invalid phone number")
        logger.info("sms_logged", mobile=mobile, **template_vars)
        return SendResult(success=True)
