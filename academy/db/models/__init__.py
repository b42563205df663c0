from academy.db.models.courses import Course
from academy.db.models.entitlements import Entitlement
from academy.db.models.lessons import Lesson
from academy.db.models.outbox_events import OutboxEvent
from academy.db.models.purchases import Purchase
from academy.db.models.users import User

__all__ = [
    "Course",
    "Entitlement",
    "Lesson",
    "OutboxEvent",
    "Purchase",
    "User",
]
