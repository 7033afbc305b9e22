from __future__ import annotations

import httpx
import structlog

from doorlist.notifications.base import SendResult, SmsSender, normalize_phone

logger = structlog.get_logger(__name__)

MSG91_FLOW_URL = "https://control.msg91.com/api/v5/flow/"


class Msg91SmsSender(SmsSender):
    """MSG91 flow API: the message text lives in a provider-side template."""

    def __init__(
        self,
        auth_key: str,
        template_id: str,
        sender_id: str | None = None,
        default_country_code: str = "91",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._template_id = template_id
        self._sender_id = sender_id
        self._default_country_code = default_country_code
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"authkey": auth_key},
        )

    def send(self, phone: str, template_vars: dict[str, str]) -> SendResult:
        mobile = normalize_phone(phone, self._default_country_code)
        if not mobile:
            return SendResult(success=False, error="invalid phone number")

        payload: dict = {
            "template_id": self._template_id,
            "short_url": "0",
            "recipients": [{"mobiles": mobile, **template_vars}],
        }
        if self._sender_id:
            payload["sender"] = self._sender_id

        try:
            response = self._client.post(MSG91_FLOW_URL, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("msg91_rejected", status_code=exc.response.status_code)
            return SendResult(success=False, error=f"msg91 returned {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("msg91_unreachable", error=str(exc))
            return SendResult(success=False, error=str(exc) or exc.__class__.__name__)
        except ValueError:
            return SendResult(success=False, error="msg91 returned a non-JSON body")

        if isinstance(body, dict) and body.get("type") == "error":
            logger.warning("msg91_error", message=body.get("message"))
            return SendResult(success=False, error=str(body.get("message") or "msg91 error"))
        return SendResult(success=True)

    def close(self) -> None:
        self._client.close()
