from __future__ import annotations

import secrets
from collections.abc import Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from doorlist.services.error_codes import ErrorCode
from doorlist.services.exceptions import TokenIssuanceError
from doorlist.services.policy import CredentialPolicy

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def generate_check_in_token(policy: CredentialPolicy) -> str:
    body = "".join(secrets.choice(policy.alphabet) for _ in range(policy.length))
    if not policy.prefix:
        return body
    return f"{policy.prefix}-{body}"


def generate_invite_token(policy: CredentialPolicy) -> str:
    return secrets.token_urlsafe(policy.invite_token_bytes)


def normalize_token(raw: str | None) -> str:
    return (raw or "").strip().upper()


def with_unique_tokens(
    db: Session,
    policy: CredentialPolicy,
    write: Callable[[], T],
    *,
    label: str,
) -> T:
    """Run ``write`` in a savepoint, retrying on unique-constraint collisions.

    ``write`` must mint fresh tokens on every call and flush its changes.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            with db.begin_nested():
                return write()
        except IntegrityError:
            logger.warning("token_collision", label=label, attempt=attempt)

    logger.error("token_issuance_failed", label=label, attempts=policy.max_attempts)
    raise TokenIssuanceError(
        ErrorCode.TOKEN_ISSUANCE_FAILED.value,
        f"could not mint a unique {label} after {policy.max_attempts} attempts",
    )
