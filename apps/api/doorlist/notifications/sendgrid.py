from __future__ import annotations

import httpx
import structlog

from doorlist.notifications.base import EmailSender, SendResult

logger = structlog.get_logger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridEmailSender(EmailSender):
    def __init__(
        self,
        api_key: str,
        from_address: str,
        from_name: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._from = {"email": from_address, "name": from_name}
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def send(self, to: str, subject: str, html_body: str) -> SendResult:
        payload = {
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "from": self._from,
            "content": [{"type": "text/html", "value": html_body}],
        }
        try:
            response = self._client.post(SENDGRID_SEND_URL, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "sendgrid_rejected",
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            return SendResult(success=False, error=f"sendgrid returned {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("sendgrid_unreachable", error=str(exc))
            return SendResult(success=False, error=str(exc) or exc.__class__.__name__)
        return SendResult(success=True)

    def close(self) -> None:
        self._client.close()
