import json
import logging
from redis.asyncio import from_url as redis_from_url
from clinicdesk.platform.ports.event_bus import EventBusPort
from clinicdesk.core.config import settings

log = logging.getLogger("clinicdesk.bus.redis")

DEFAULT_STREAM = "clinicdesk.events"

class RedisEventBus(EventBusPort):
    def __init__(self, url: str | None = None, stream: str | None = None):
        url = url or settings.REDIS_URL
        if not url:
            raise RuntimeError("REDIS_URL not configured")
        self.redis = redis_from_url(url, encoding="utf-8", decode_responses=True)
        self.stream = stream or settings.REDIS_STREAM or DEFAULT_STREAM

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        entry = {
            "topic": topic,
            "key": key,
            "event_type": value.get("event_type", ""),
            "value": json.dumps(value, default=str),
            "headers": json.dumps(headers or {}),
        }
        entry_id = await self.redis.xadd(self.stream, entry, maxlen=settings.REDIS_STREAM_MAXLEN, approximate=True)
        log.debug("XADD stream=%s id=%s topic=%s key=%s", self.stream, entry_id, topic, key)

    async def close(self) -> None:
        await self.redis.aclose()
