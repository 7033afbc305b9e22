from __future__ import annotations

from functools import lru_cache

from doorlist.core.config import settings
from doorlist.notifications.base import EmailSender, SmsSender
from doorlist.notifications.console import ConsoleEmailSender, ConsoleSmsSender
from doorlist.notifications.msg91 import Msg91SmsSender
from doorlist.notifications.sendgrid import SendGridEmailSender


def create_email_sender(backend: str | None = None) -> EmailSender:
    selected_backend = (backend or settings.email_backend).strip().lower()
    if selected_backend == "console":
        return ConsoleEmailSender()
    if selected_backend == "sendgrid":
        if not settings.sendgrid_api_key:
            raise ValueError("SENDGRID_API_KEY is required for the sendgrid backend")
        return SendGridEmailSender(
            api_key=settings.sendgrid_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            timeout=settings.provider_timeout_seconds,
        )
    raise ValueError(f"unsupported email backend: {selected_backend}")


def create_sms_sender(backend: str | None = None) -> SmsSender:
    selected_backend = (backend or settings.sms_backend).strip().lower()
    if selected_backend == "console":
        return ConsoleSmsSender(default_country_code=settings.sms_default_country_code)
    if selected_backend == "msg91":
        if not settings.msg91_auth_key or not settings.msg91_template_id:
            raise ValueError("MSG91_AUTH_KEY and MSG91_TEMPLATE_ID are required for msg91")
        return Msg91SmsSender(
            auth_key=settings.msg91_auth_key,
            template_id=settings.msg91_template_id,
            sender_id=settings.msg91_sender_id,
            default_country_code=settings.sms_default_country_code,
            timeout=settings.provider_timeout_seconds,
        )
    raise ValueError(f"unsupported sms backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_email_sender() -> EmailSender:
    return create_email_sender()


@lru_cache(maxsize=1)
def get_sms_sender() -> SmsSender:
    return create_sms_sender()
