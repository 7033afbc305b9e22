from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

_NON_DIGITS = re.compile(r"\D+")


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None


class EmailSender(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, html_body: str) -> SendResult:
        """Deliver one message. Must report failures instead of raising."""


class SmsSender(ABC):
    @abstractmethod
    def send(self, phone: str, template_vars: dict[str, str]) -> SendResult:
        """Deliver one templated SMS. Must report failures instead of raising."""


def normalize_phone(raw: str, default_country_code: str) -> str:
    """Digits only, with the default country code prefixed to local numbers.

    ``"098765-43210"`` -> ``"919876543210"`` for country code ``91``.
    """
    stripped = (raw or "").strip()
    digits = _NON_DIGITS.sub("", stripped)
    if not digits:
        return ""
    if stripped.startswith("+"):
        return digits
    if stripped.startswith("00"):
        return digits[2:]
    digits = digits.lstrip("0")
    if not digits:
        return ""
    if len(digits) <= 10:
        return f"{default_country_code}{digits}"
    return digits
