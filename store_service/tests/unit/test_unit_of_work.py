"""
Unit tests for UnitOfWork: outbox staging and conflict detection.
"""

import pytest
from sqlalchemy import select

from store_service.app.core.errors import ConflictError
from store_service.app.core.unit_of_work import UnitOfWork
from store_service.app.models.category import Category
from store_service.app.models.outbox import OutboxMessage


async def create_category(session_factory, name="Electronics", slug="electronics"):
    async with session_factory() as session:
        uow = UnitOfWork(session)
        category = await uow.category_writer.add(Category.create(name, slug).value)
        await uow.save_changes()
        return category.id


async def outbox_types(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(OutboxMessage).order_by(OutboxMessage.id))
        return [m.type for m in result.scalars().all()]


class TestUnitOfWork:
    @pytest.mark.asyncio
    async def test_events_written_in_emission_order(self, session_factory):
        async with session_factory() as session:
            uow = UnitOfWork(session)
            category = await uow.category_writer.add(
                Category.create("Electronics", "electronics").value
            )
            category.update("Tech", "tech")
            category.deactivate()

            written = await uow.save_changes()

        assert written == 3
        assert await outbox_types(session_factory) == [
            "CategoryCreatedEvent",
            "CategoryUpdatedEvent",
            "CategoryStatusChangedEvent",
        ]

    @pytest.mark.asyncio
    async def test_events_are_not_written_twice(self, session_factory):
        async with session_factory() as session:
            uow = UnitOfWork(session)
            await uow.category_writer.add(Category.create("A", "a").value)
            await uow.save_changes()

            assert await uow.save_changes() == 0

        assert len(await outbox_types(session_factory)) == 1

    @pytest.mark.asyncio
    async def test_exception_rolls_back_state_and_events(self, session_factory):
        with pytest.raises(RuntimeError):
            async with session_factory() as session:
                async with UnitOfWork(session) as uow:
                    category = await uow.category_writer.add(
                        Category.create("A", "a").value
                    )
                    raise RuntimeError("request failed")

        assert category.domain_events == []
        assert await outbox_types(session_factory) == []
        async with session_factory() as session:
            assert (await session.execute(select(Category))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_concurrent_updates_conflict(self, session_factory):
        category_id = await create_category(session_factory)

        async with session_factory() as first, session_factory() as second:
            first_uow, second_uow = UnitOfWork(first), UnitOfWork(second)
            winner = await first_uow.category_writer.get_by_id(category_id)
            loser = await second_uow.category_writer.get_by_id(category_id)

            winner.deactivate()
            await first_uow.save_changes()

            loser.update("Renamed", "electronics")
            with pytest.raises(ConflictError) as exc_info:
                await second_uow.save_changes()

        assert exc_info.value.error.code == "Store.ConcurrencyConflict"

        async with session_factory() as session:
            category = await session.get(Category, category_id)
            assert category.name == "Electronics"
            assert category.is_active is False
            assert category.version == 2
        assert "CategoryUpdatedEvent" not in await outbox_types(session_factory)

    @pytest.mark.asyncio
    async def test_unique_violation_is_a_conflict(self, session_factory):
        await create_category(session_factory, "A", "same")

        async with session_factory() as session:
            uow = UnitOfWork(session)
            await uow.category_writer.add(Category.create("B", "same").value)
            with pytest.raises(ConflictError) as exc_info:
                await uow.save_changes()

        assert exc_info.value.error.code == "Store.IntegrityConflict"
