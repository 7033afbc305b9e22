from doorlist.services.checkin_service import check_in_guest, redeem_check_in
from doorlist.services.events_service import (
    create_event,
    hard_delete_event,
    restore_event,
    smart_delete_event,
    update_event,
)
from doorlist.services.guests_service import create_guest, regenerate_check_in_token
from doorlist.services.invitations_service import dispatch_invitations, open_invitation
from doorlist.services.sweep_service import run_sweep

__all__ = [
    "create_event",
    "update_event",
    "smart_delete_event",
    "restore_event",
    "hard_delete_event",
    "create_guest",
    "regenerate_check_in_token",
    "check_in_guest",
    "redeem_check_in",
    "dispatch_invitations",
    "open_invitation",
    "run_sweep",
]
