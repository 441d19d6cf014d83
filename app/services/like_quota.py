import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Tuple, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import UNLIMITED_WIRE_VALUE
from app.core.config import settings
from app.core.errors import NotFoundError
from app.models.user import User

logger = logging.getLogger(__name__)


class _Unlimited:
    """Quota sentinel for premium users. Never compared against a number."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNLIMITED"


UNLIMITED = _Unlimited()

Quota = Union[int, _Unlimited]


def wire_value(value: Quota) -> int:
    return UNLIMITED_WIRE_VALUE if value is UNLIMITED else value


@dataclass(frozen=True)
class LikeQuotaStatus:
    can_like: bool
    remaining_likes: Quota
    daily_limit: Quota
    is_premium: bool
    daily_likes_used: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "canLike": self.can_like,
            "remainingLikes": wire_value(self.remaining_likes),
            "dailyLimit": wire_value(self.daily_limit),
            "isPremium": self.is_premium,
            "dailyLikesUsed": self.daily_likes_used,
        }


class LikeQuotaTracker:
    """
    Per-user daily like counter with a premium bypass.

    The counter lives on the users row and resets lazily on the first access of
    a new server-local calendar day. ``check`` locks that row, so a following
    ``consume`` in the same transaction cannot race another like from the same user.
    """

    def __init__(
        self,
        session: AsyncSession,
        daily_limit: int = None,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.session = session
        self.daily_limit = daily_limit if daily_limit is not None else settings.FREE_DAILY_LIKES
        self._today = today
        self._now = now

    async def _load_user(self, user_id: int, for_update: bool) -> User:
        stmt = select(User).where(User.id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

    def reset_if_new_day(self, user: User) -> bool:
        today = self._today()
        if user.last_like_reset_date == today:
            return False
        user.daily_likes_used = 0
        user.last_like_reset_date = today
        logger.info(f"Reset daily likes for user {user.id}")
        return True

    def evaluate(self, user: User) -> LikeQuotaStatus:
        used = user.daily_likes_used or 0
        if user.is_premium_active(self._now()):
            return LikeQuotaStatus(
                can_like=True,
                remaining_likes=UNLIMITED,
                daily_limit=UNLIMITED,
                is_premium=True,
                daily_likes_used=used,
            )

        remaining = max(0, self.daily_limit - used)
        return LikeQuotaStatus(
            can_like=remaining > 0,
            remaining_likes=remaining,
            daily_limit=self.daily_limit,
            is_premium=False,
            daily_likes_used=used,
        )

    async def check(self, user_id: int) -> Tuple[User, LikeQuotaStatus]:
        """Lock the user's quota row, reset it if the day changed and evaluate it."""
        user = await self._load_user(user_id, for_update=True)
        self.reset_if_new_day(user)
        return user, self.evaluate(user)

    def consume(self, user: User) -> LikeQuotaStatus:
        """Count one successful like. Premium users are not counted."""
        self.reset_if_new_day(user)
        status = self.evaluate(user)
        if status.is_premium:
            return status
        user.daily_likes_used = (user.daily_likes_used or 0) + 1
        return self.evaluate(user)

    async def status(self, user_id: int) -> LikeQuotaStatus:
        user = await self._load_user(user_id, for_update=False)
        if self.reset_if_new_day(user):
            await self.session.commit()
        return self.evaluate(user)
