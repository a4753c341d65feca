from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Notification:
    id: UUID
    user_id: str
    title: str
    description: str
    created_at: int
    is_read: bool = False

    @staticmethod
    def new(
        *, user_id: str, title: str, description: str, created_at: int
    ) -> Notification:
        return Notification(
            id=uuid4(),
            user_id=user_id,
            title=title,
            description=description,
            created_at=created_at,
        )
