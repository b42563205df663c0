from __future__ import annotations

from academy.core.errors import AcademyError


class UserNotFoundError(AcademyError):
    code = "E_USER_NOT_FOUND"

    def __init__(self, user_id: int) -> None:
        super().__init__(f"user {user_id} does not exist")
        self.user_id = user_id
