from __future__ import annotations

from uuid import UUID

from academy.core.errors import AcademyError


class PurchaseError(AcademyError):
    pass


class AlreadyOwnedError(PurchaseError):
    code = "E_ALREADY_OWNED"

    def __init__(
        self,
        *,
        user_id: int,
        course_id: int,
        covering_course_id: int | None = None,
    ) -> None:
        covering = covering_course_id if covering_course_id is not None else course_id
        super().__init__(f"user {user_id} already has access to course {course_id} via course {covering}")
        self.user_id = user_id
        self.course_id = course_id
        self.covering_course_id = covering


class AlreadyEntitledError(PurchaseError):
    code = "E_ALREADY_ENTITLED"

    def __init__(self, *, user_id: int, plan: str) -> None:
        super().__init__(f"user {user_id} is on the {plan} plan and needs no purchase")
        self.user_id = user_id
        self.plan = plan


class InvalidRecipientError(PurchaseError):
    code = "E_INVALID_RECIPIENT"

    def __init__(self, *, payer_id: int, recipient_id: int, reason: str) -> None:
        super().__init__(f"user {payer_id} cannot gift to user {recipient_id}: {reason}")
        self.payer_id = payer_id
        self.recipient_id = recipient_id
        self.reason = reason


class PurchaseNotFoundError(PurchaseError):
    code = "E_PURCHASE_NOT_FOUND"

    def __init__(self, purchase_id: UUID) -> None:
        super().__init__(f"purchase {purchase_id} does not exist")
        self.purchase_id = purchase_id
