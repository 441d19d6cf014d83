"""Push notification client (FCM HTTP API)."""
import logging
from typing import Dict, Any, Optional
import aiohttp
from app.config.constants import PUSH_TIMEOUT_SECONDS, PUSH_CHANNEL_ID

logger = logging.getLogger(__name__)


class PushClient:
    """Sends device push notifications."""

    def __init__(self, server_key: Optional[str], api_url: str):
        """
        Initialize push client.

        Args:
            server_key: FCM server key; without it every send is skipped
            api_url: FCM send endpoint
        """
        self.server_key = server_key
        self.api_url = api_url

    @property
    def is_configured(self) -> bool:
        return bool(self.server_key)

    def build_payload(self, token: str, title: str, body: str, data: Dict[str, Any] = None) -> Dict[str, Any]:
        return {
            "to": token,
            "priority": "high",
            "notification": {
                "title": title,
                "body": body,
                "sound": "default",
                "android_channel_id": PUSH_CHANNEL_ID,
            },
            # FCM data payload values must be strings
            "data": {key: str(value) for key, value in (data or {}).items()},
        }

    async def send(self, token: str, title: str, body: str, data: Dict[str, Any] = None) -> bool:
        """
        Send one notification.

        Returns:
            True if the provider accepted it
        """
        if not self.is_configured:
            logger.warning("Push server key not configured. Skipping notification.")
            return False

        if not token:
            logger.warning("No push token provided. Skipping notification.")
            return False

        payload = self.build_payload(token, title, body, data)
        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.api_url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=PUSH_TIMEOUT_SECONDS)
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"Push API error {response.status}: {error_text}")
                        return False
                    return True
        except (aiohttp.ClientError, TimeoutError):
            logger.exception("Failed to send push notification")
            return False
