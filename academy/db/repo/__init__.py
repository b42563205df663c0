from academy.db.repo.courses_repo import CoursesRepo
from academy.db.repo.entitlements_repo import EntitlementsRepo
from academy.db.repo.outbox_events_repo import OutboxEventsRepo
from academy.db.repo.purchases_repo import PurchasesRepo
from academy.db.repo.users_repo import UsersRepo

__all__ = [
    "CoursesRepo",
    "EntitlementsRepo",
    "OutboxEventsRepo",
    "PurchasesRepo",
    "UsersRepo",
]
