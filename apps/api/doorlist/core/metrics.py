from prometheus_client import Counter

CHECKINS = Counter(
    "doorlist_checkins_total",
    "Check-in redemptions by outcome",
    ["outcome"],
)

LIFECYCLE_TRANSITIONS = Counter(
    "doorlist_lifecycle_transitions_total",
    "Event lifecycle transitions by kind",
    ["transition"],
)

INVITATION_SENDS = Counter(
    "doorlist_invitation_sends_total",
    "Invitation deliveries by channel and outcome",
    ["channel", "outcome"],
)
