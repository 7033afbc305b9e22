from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from jinja2 import Environment, PackageLoader, select_autoescape

from doorlist.models import Event, Guest


@dataclass(frozen=True)
class InvitationLinks:
    invitation_url: str
    qr_code_url: str


@lru_cache(maxsize=1)
def _templates() -> Environment:
    return Environment(
        loader=PackageLoader("doorlist.notifications", "templates"),
        autoescape=select_autoescape(["html"]),
    )


def _time_range(event: Event) -> str:
    start = event.time_start.strftime("%H:%M") if event.time_start else None
    end = event.time_end.strftime("%H:%M") if event.time_end else None
    if start and end:
        return f"{start} - {end}"
    return start or end or "All day"


def _venue(event: Event) -> str:
    return event.venue_name or "TBA"


def invitation_subject(event: Event) -> str:
    return f"You're invited to {event.name}"


def render_invitation_email(guest: Guest, event: Event, links: InvitationLinks) -> str:
    template = _templates().get_template("invitation_email.html")
    return template.render(
        guest=guest,
        event=event,
        event_date=event.date.isoformat(),
        time_range=_time_range(event),
        venue=_venue(event),
        is_vip=(guest.category or "").strip().upper() == "VIP",
        links=links,
    )


def invitation_sms_vars(guest: Guest, event: Event, links: InvitationLinks) -> dict[str, str]:
    return {
        "name": guest.name,
        "event": event.name,
        "date": event.date.isoformat(),
        "time": _time_range(event),
        "venue": _venue(event),
        "link": links.invitation_url,
    }
