from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RequestContext:
    """Per-request state handed to services: the session, the caller and the clock."""

    db: AsyncSession
    user: User
    now: datetime = field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin

    def owns(self, owner_id) -> bool:
        return owner_id == self.user.id
