from datetime import date, timedelta
from unittest.mock import AsyncMock, patch
import asyncio

import pytest
from sqlalchemy import text
from sqlalchemy.pool import NullPool

from bepawa.core.permissions import UserRole
from bepawa.domain.notifications.service import NotificationService
from bepawa.infrastructure.database import task_session
from bepawa.workers.celery_app import celery_app
from bepawa.workers.tasks import notify_expiring, notify_low_stock, scan_low_stock


@pytest.mark.unit
def test_beat_schedule_targets_registered_tasks():
    tasks = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}
    assert tasks == {"bepawa.workers.tasks.scan_low_stock", "bepawa.workers.tasks.scan_expiring_products"}


@pytest.mark.asyncio
async def test_low_stock_scan_sends_one_summary_per_owner(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    wholesaler = await make_profile(UserRole.WHOLESALE)
    await make_product(pharmacy, name="ORS", stock=1, min_stock_level=5)
    await make_product(pharmacy, name="Zinc", stock=2, min_stock_level=5)
    await make_product(wholesaler, name="Gloves", stock=500, min_stock_level=50)

    assert await notify_low_stock(db) == 1
    notes = await NotificationService(db).list_for_user(pharmacy.id)
    assert len(notes) == 1
    assert notes[0].type == "warning"
    assert len(notes[0].metadata["product_ids"]) == 2
    assert await NotificationService(db).unread_count(wholesaler.id) == 0


@pytest.mark.asyncio
async def test_expiry_scan(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    today = date(2026, 6, 1)
    await make_product(pharmacy, name="Amoxil", expiry_date=today + timedelta(days=5))

    assert await notify_expiring(db, days=30, today=today) == 1
    assert await notify_expiring(db, days=1, today=today) == 0


@pytest.mark.unit
def test_task_sessions_work_across_event_loops():
    async def select_one():
        async with task_session() as db:
            assert isinstance(db.bind.sync_engine.pool, NullPool)
            return (await db.execute(text("SELECT 1"))).scalar_one()

    # each Celery run calls asyncio.run, so consecutive runs get fresh loops
    assert asyncio.run(select_one()) == 1
    assert asyncio.run(select_one()) == 1


@pytest.mark.unit
def test_scan_task_runs_repeatedly_in_one_process():
    with patch("bepawa.workers.tasks.notify_low_stock", new=AsyncMock(return_value=2)) as notify:
        first = scan_low_stock.apply().get()
        second = scan_low_stock.apply().get()

    assert first == second == {"status": "success", "owners_notified": 2}
    sessions = [call.args[0] for call in notify.await_args_list]
    assert len(sessions) == 2 and sessions[0] is not sessions[1]
