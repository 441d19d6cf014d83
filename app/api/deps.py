"""Request-scoped dependencies for the HTTP routers."""
from typing import AsyncIterator, Optional

from fastapi import Depends, Header

from app.core.config import settings
from app.core.errors import AuthenticationError
from app.core.redis import get_redis
from app.db.session import get_db
from app.infrastructure.clients.push import PushClient
from app.services.match_service import MatchService
from app.services.notifier import MatchNotifier, NotificationDeduplicator
from app.services.realtime import realtime_hub


def parse_user_id(raw: Optional[str]) -> Optional[int]:
    try:
        user_id = int(raw)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> int:
    """Identity is asserted by the upstream auth gateway in ``X-User-Id``."""
    user_id = parse_user_id(x_user_id)
    if user_id is None:
        raise AuthenticationError()
    return user_id


def get_notifier() -> MatchNotifier:
    return MatchNotifier(
        realtime=realtime_hub,
        push=PushClient(settings.PUSH_SERVER_KEY, settings.PUSH_API_URL),
        dedup=NotificationDeduplicator(get_redis(), settings.NOTIFICATION_DEDUP_SECONDS),
    )


async def get_match_service(
    session=Depends(get_db),
    notifier: MatchNotifier = Depends(get_notifier),
) -> AsyncIterator[MatchService]:
    yield MatchService(session, notifier=notifier)
