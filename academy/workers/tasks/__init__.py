from academy.workers.tasks.entitlements_housekeeping import run_entitlement_housekeeping
from academy.workers.tasks.notifications import deliver_notifications

__all__ = [
    "deliver_notifications",
    "run_entitlement_housekeeping",
]
