"""Explicit lifecycle and credential knobs.

Services receive these objects as arguments; only ``from_settings`` reads
configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from zoneinfo import ZoneInfo

from doorlist.core.config import Settings, settings


@dataclass(frozen=True)
class LifecyclePolicy:
    retention: timedelta = timedelta(days=15)
    purge_after: timedelta = timedelta(days=30)
    recently_cancelled: timedelta = timedelta(hours=48)
    timezone: ZoneInfo = ZoneInfo("UTC")

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> LifecyclePolicy:
        return cls(
            retention=timedelta(days=cfg.archive_retention_days),
            purge_after=timedelta(days=cfg.purge_after_days),
            recently_cancelled=timedelta(hours=cfg.recently_cancelled_hours),
            timezone=ZoneInfo(cfg.event_timezone),
        )


@dataclass(frozen=True)
class CredentialPolicy:
    prefix: str = "CK"
    length: int = 8
    alphabet: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    invite_token_bytes: int = 32
    max_attempts: int = 5
    default_scanner_label: str = "Scanner"
    timezone: ZoneInfo = ZoneInfo("UTC")

    def __post_init__(self) -> None:
        if self.length < 4:
            raise ValueError("check-in token length must be at least 4")
        if len(set(self.alphabet.upper())) < 16:
            raise ValueError("check-in token alphabet needs at least 16 distinct characters")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> CredentialPolicy:
        return cls(
            prefix=cfg.checkin_token_prefix.strip().upper(),
            length=cfg.checkin_token_length,
            alphabet=cfg.checkin_token_alphabet.upper(),
            invite_token_bytes=cfg.invite_token_bytes,
            max_attempts=cfg.token_max_attempts,
            default_scanner_label=cfg.default_scanner_label,
            timezone=ZoneInfo(cfg.event_timezone),
        )


def lifecycle_policy() -> LifecyclePolicy:
    return LifecyclePolicy.from_settings()


def credential_policy() -> CredentialPolicy:
    return CredentialPolicy.from_settings()
