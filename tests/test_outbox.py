from clinicdesk.modules.events.outbox import TOPIC, EventOutbox, publish_pending
from sqlalchemy import select


async def test_domain_changes_are_relayed_once(session_factory, providers, patient, visit):
    async with session_factory() as s:
        claimed = await publish_pending(s, providers)
    assert claimed >= 3

    types = [value["event_type"] for topic, _, value in providers.published]
    assert {"tenant.created", "patient.registered", "visit.created"} <= set(types)
    assert all(topic == TOPIC for topic, _, _ in providers.published)

    async with session_factory() as s:
        assert await publish_pending(s, providers) == 0
        rows = (await s.execute(select(EventOutbox))).scalars().all()
    assert {r.status for r in rows} == {"sent"}


async def test_failed_publish_is_retried_later(session_factory, patient):
    class Broken:
        async def publish(self, topic, key, value, headers=None):
            raise RuntimeError("bus down")

        async def close(self):
            pass

    async with session_factory() as s:
        await publish_pending(s, Broken())
        rows = (await s.execute(select(EventOutbox))).scalars().all()
    assert rows and all(r.status == "pending" and r.attempts == 1 for r in rows)
    assert rows[0].last_error == "bus down"
