from clinicdesk.core.config import settings
from clinicdesk.platform.ports.object_storage import ObjectStoragePort
from clinicdesk.platform.adapters.storage_local import LocalFilesystemStorage
from clinicdesk.platform.adapters.storage_s3 import S3Storage
from clinicdesk.platform.ports.event_bus import EventBusPort
from clinicdesk.platform.adapters.bus_noop import NoopEventBus
from clinicdesk.platform.adapters.bus_redis import RedisEventBus

class ProviderRegistry:
    _object_storage: ObjectStoragePort | None = None
    _event_bus: EventBusPort | None = None

    @classmethod
    def object_storage(cls) -> ObjectStoragePort:
        if cls._object_storage is None:
            if settings.OBJECT_STORAGE_PROVIDER == "s3":
                cls._object_storage = S3Storage()
            else:
                cls._object_storage = LocalFilesystemStorage(settings.LOCAL_STORAGE_ROOT)
        return cls._object_storage

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            prov = (settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                cls._event_bus = RedisEventBus()
            else:
                cls._event_bus = NoopEventBus()
        return cls._event_bus

    @classmethod
    def use(cls, *, object_storage: ObjectStoragePort | None = None, event_bus: EventBusPort | None = None) -> None:
        """Swap providers in place (tests, scripts)."""
        if object_storage is not None:
            cls._object_storage = object_storage
        if event_bus is not None:
            cls._event_bus = event_bus

    @classmethod
    def reset(cls) -> None:
        cls._object_storage = None
        cls._event_bus = None

registry = ProviderRegistry()
