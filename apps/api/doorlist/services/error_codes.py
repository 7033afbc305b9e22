from enum import Enum


class ErrorCode(str, Enum):
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_ARCHIVED = "EVENT_ARCHIVED"
    EVENT_NOT_ARCHIVED = "EVENT_NOT_ARCHIVED"
    EVENT_NAME_REQUIRED = "EVENT_NAME_REQUIRED"
    EVENT_VENUE_REQUIRED = "EVENT_VENUE_REQUIRED"
    INVALID_DELETED_BY = "INVALID_DELETED_BY"

    GUEST_NOT_FOUND = "GUEST_NOT_FOUND"
    GUEST_NAME_REQUIRED = "GUEST_NAME_REQUIRED"
    GUEST_TOKEN_REQUIRED = "GUEST_TOKEN_REQUIRED"
    GUEST_TOKEN_NOT_FOUND = "GUEST_TOKEN_NOT_FOUND"
    TOKEN_ISSUANCE_FAILED = "TOKEN_ISSUANCE_FAILED"
    EVENT_NOT_ACCEPTING_CHECKINS = "EVENT_NOT_ACCEPTING_CHECKINS"

    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    NO_CHANNEL_SELECTED = "NO_CHANNEL_SELECTED"
    DISPATCH_ABORT_UNAVAILABLE = "DISPATCH_ABORT_UNAVAILABLE"
