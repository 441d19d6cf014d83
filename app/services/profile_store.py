from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Dict, Iterable, List, Optional
import logging

from app.config.constants import CANDIDATE_POOL_LIMIT
from app.models.profile import UserProfile
from app.models.user import User
from app.schemas.profile import ProfileSnapshot

logger = logging.getLogger(__name__)


def to_snapshot(profile: UserProfile, user: User) -> ProfileSnapshot:
    return ProfileSnapshot(
        id=profile.id,
        user_id=profile.user_id,
        display_name=user.display_name if user else "",
        push_token=user.push_token if user else None,
        bio=profile.bio,
        location=profile.location,
        gender=profile.gender,
        gender_preference=profile.gender_preference,
        keywords=profile.keywords,
        relationship_types=profile.relationship_types,
        latitude=profile.latitude,
        longitude=profile.longitude,
        location_mode=profile.location_mode,
        is_hidden=profile.is_hidden,
    )


class ProfileStore:
    """Read-only access to profiles, returned as validated snapshots."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _base_query(self):
        return select(UserProfile, User).join(User, UserProfile.user_id == User.id)

    async def get_by_user(self, user_id: int) -> Optional[ProfileSnapshot]:
        stmt = self._base_query().where(UserProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        row = result.first()
        return to_snapshot(*row) if row else None

    async def get(self, profile_id: int) -> Optional[ProfileSnapshot]:
        stmt = self._base_query().where(UserProfile.id == profile_id)
        result = await self.session.execute(stmt)
        row = result.first()
        return to_snapshot(*row) if row else None

    async def get_many(self, profile_ids: Iterable[int]) -> Dict[int, ProfileSnapshot]:
        ids = set(profile_ids)
        if not ids:
            return {}
        stmt = self._base_query().where(UserProfile.id.in_(ids))
        result = await self.session.execute(stmt)
        return {profile.id: to_snapshot(profile, user) for profile, user in result.all()}

    async def candidate_pool(
        self,
        requester: ProfileSnapshot,
        exclude_ids: Iterable[int] = (),
        gender: Optional[str] = None,
        limit: int = CANDIDATE_POOL_LIMIT,
    ) -> List[ProfileSnapshot]:
        """
        Visible profiles other than the requester, in id order.

        ``gender`` narrows the pool in SQL, before the limit applies.
        """
        stmt = self._base_query().where(
            UserProfile.is_hidden.is_(False),
            UserProfile.id != requester.id,
        )
        if gender:
            stmt = stmt.where(UserProfile.gender == gender)
        exclude_ids = set(exclude_ids)
        if exclude_ids:
            stmt = stmt.where(UserProfile.id.notin_(exclude_ids))
        stmt = stmt.order_by(UserProfile.id).limit(limit)

        result = await self.session.execute(stmt)
        return [to_snapshot(profile, user) for profile, user in result.all()]
