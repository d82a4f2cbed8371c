from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import settings
from .base import Base

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

def import_models():
    # every mapped class must be imported before create_all
    from clinicdesk.modules.tenants import models as _tenants  # noqa: F401
    from clinicdesk.modules.users import models as _users  # noqa: F401
    from clinicdesk.modules.patients import models as _patients  # noqa: F401
    from clinicdesk.modules.visits import models as _visits  # noqa: F401
    from clinicdesk.modules.appointments import models as _appointments  # noqa: F401
    from clinicdesk.modules.availability import models as _availability  # noqa: F401
    from clinicdesk.modules.notifications import models as _notifications  # noqa: F401
    from clinicdesk.modules.audit import models as _audit  # noqa: F401
    from clinicdesk.modules.events import outbox as _outbox  # noqa: F401
    return Base.metadata

async def init_models():
    ## In dev-only "create_all" mode, keep old behavior; otherwise, migrations own the schema.
    if settings.DB_MANAGE == "create_all":
        metadata = import_models()
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
