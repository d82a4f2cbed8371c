import json
import logging
from clinicdesk.platform.ports.event_bus import EventBusPort

log = logging.getLogger("clinicdesk.bus.noop")

class NoopEventBus(EventBusPort):
    """Logs every event instead of delivering it."""

    def __init__(self):
        self.published: list[tuple[str, str, dict]] = []

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        self.published.append((topic, key, value))
        log.info("event topic=%s key=%s type=%s", topic, key, value.get("event_type"))
        log.debug("event body=%s headers=%s", json.dumps(value, default=str), headers or {})

    async def close(self) -> None:
        self.published.clear()
