"""
Match notification fan-out.

The ledger guarantees one ``MatchNotificationEvent`` per transition into
``matched``. Delivering it (realtime channel and device push) and dropping
near-simultaneous duplicates is handled here.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from redis.exceptions import RedisError

from app.config.constants import MESSAGE_PREVIEW_LENGTH, NOTIFICATION_DEDUP_KEY_PREFIX
from app.infrastructure.clients.push import PushClient
from app.schemas.profile import ProfileSnapshot
from app.services.realtime import RealtimeHub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationParty:
    profile_id: int
    user_id: int
    display_name: str
    push_token: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: ProfileSnapshot) -> "NotificationParty":
        return cls(
            profile_id=profile.id,
            user_id=profile.user_id,
            display_name=profile.display_name,
            push_token=profile.push_token,
        )


@dataclass(frozen=True)
class MatchNotificationEvent:
    match_id: int
    matched_at: datetime
    # (actor, other party)
    parties: Tuple[NotificationParty, NotificationParty]

    def realtime_payload(self, recipient: NotificationParty) -> Dict[str, Any]:
        actor, other = self.parties
        counterpart = other if recipient == actor else actor
        return {
            "matchId": self.match_id,
            "matchedAt": self.matched_at.isoformat() if self.matched_at else None,
            "matchedUserId": counterpart.profile_id,
            "matchedUserName": counterpart.display_name,
            "isCurrentUser": recipient == actor,
        }


def message_preview(content: str) -> str:
    content = content.strip()
    if len(content) > MESSAGE_PREVIEW_LENGTH:
        return content[:MESSAGE_PREVIEW_LENGTH] + "..."
    return content


class NotificationDeduplicator:
    """Short-TTL Redis keys marking a delivery as already done."""

    def __init__(self, redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def key(self, kind: str, ref: Any, recipient_user_id: int) -> str:
        return f"{NOTIFICATION_DEDUP_KEY_PREFIX}:{kind}:{ref}:{recipient_user_id}"

    async def first_delivery(self, kind: str, ref: Any, recipient_user_id: int) -> bool:
        key = self.key(kind, ref, recipient_user_id)
        try:
            return bool(await self.redis.set(key, "1", nx=True, ex=self.ttl_seconds))
        except RedisError:
            # Without the cache we may deliver twice, never zero times
            logger.warning(f"De-dup cache unavailable, delivering {key} anyway")
            return True


class MatchNotifier:
    def __init__(self, realtime: RealtimeHub, push: PushClient, dedup: NotificationDeduplicator):
        self.realtime = realtime
        self.push = push
        self.dedup = dedup

    async def _push(self, kind: str, ref: Any, recipient: NotificationParty, title: str, body: str, data: Dict[str, Any]) -> bool:
        if not recipient.push_token:
            logger.info(f"User {recipient.user_id} has no push token, skipping {kind} push")
            return False
        if not await self.dedup.first_delivery(f"{kind}-push", ref, recipient.user_id):
            logger.info(f"Skipping duplicate {kind} push {ref} for user {recipient.user_id}")
            return False
        return await self.push.send(recipient.push_token, title, body, data)

    async def _emit(self, kind: str, ref: Any, recipient: NotificationParty, event: str, data: Dict[str, Any]) -> int:
        if not await self.dedup.first_delivery(f"{kind}-realtime", ref, recipient.user_id):
            logger.info(f"Skipping duplicate {event} event {ref} for user {recipient.user_id}")
            return 0
        return await self.realtime.emit(recipient.user_id, event, data)

    async def notify_match(self, event: MatchNotificationEvent):
        actor, other = event.parties
        logger.info(f"Delivering match {event.match_id} to users {actor.user_id} and {other.user_id}")

        for recipient in event.parties:
            await self._emit("match", event.match_id, recipient, "new_match", event.realtime_payload(recipient))

        for recipient, counterpart in ((other, actor), (actor, other)):
            await self._push(
                "match",
                event.match_id,
                recipient,
                title="🎉 New Match!",
                body=f"You matched with {counterpart.display_name}! Start chatting now.",
                data={
                    "type": "new_match",
                    "matchId": event.match_id,
                    "userId": counterpart.profile_id,
                    "userName": counterpart.display_name,
                },
            )

    async def notify_like(self, match_id: int, liker: NotificationParty, liked: NotificationParty):
        await self._push(
            "like",
            f"{match_id}-{liker.profile_id}",
            liked,
            title="💖 Someone likes you!",
            body=f"{liker.display_name} liked your profile. Like them back to match!",
            data={
                "type": "new_like",
                "likerId": liker.profile_id,
                "likerName": liker.display_name,
                "likedUserId": liked.profile_id,
            },
        )

    async def notify_message(self, match_id: int, message_id: int, sender: NotificationParty, recipient: NotificationParty, content: str):
        await self._push(
            "message",
            message_id,
            recipient,
            title=sender.display_name,
            body=message_preview(content),
            data={
                "type": "new_message",
                "matchId": match_id,
                "messageId": message_id,
                "senderId": sender.profile_id,
                "senderName": sender.display_name,
            },
        )

    async def notify_unmatch(self, match_id: int, actor: NotificationParty, other: NotificationParty):
        payload = {
            "matchId": match_id,
            "unmatchedAt": datetime.now(timezone.utc).isoformat(),
            "currentUserId": actor.user_id,
        }
        for recipient in (actor, other):
            await self._emit("unmatch", match_id, recipient, "match_unmatched", payload)
