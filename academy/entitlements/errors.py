from __future__ import annotations

from academy.core.errors import AcademyError


class LedgerError(AcademyError):
    pass


class DuplicateGrantError(LedgerError):
    """A live grant covering the same access was written concurrently.

    The ledger state changed underneath the caller; re-running the whole
    flow from validation resolves it.
    """

    code = "E_DUPLICATE_GRANT"
    retryable = True

    def __init__(self, *, user_id: int, scope: str, course_id: int) -> None:
        super().__init__(f"user {user_id} already holds a live {scope} grant for course {course_id}")
        self.user_id = user_id
        self.scope = scope
        self.course_id = course_id


class GrantNotFoundError(LedgerError):
    code = "E_GRANT_NOT_FOUND"

    def __init__(self, entitlement_id: int) -> None:
        super().__init__(f"entitlement {entitlement_id} does not exist")
        self.entitlement_id = entitlement_id
