import asyncio
import logging

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from food_court.crud import order as order_crud
from food_court.models import OrderStatusEnum
from food_court.tasks.estimated_time import TICK_LOCK_KEY, EstimatedTimeTicker


@pytest.mark.asyncio
async def test_tick_decrements_countdown(db, session_factory, make_order, fake_redis):
    order = await make_order(status=OrderStatusEnum.confirmed, estimated_time=10)
    ticker = EstimatedTimeTicker(session_factory, fake_redis, interval=60)

    assert await ticker.tick() == 1
    assert (await order_crud.get_order(db, order.order_id)).estimated_time == 9
    assert TICK_LOCK_KEY in fake_redis.store


@pytest.mark.asyncio
async def test_tick_skipped_while_another_worker_holds_the_lock(db, session_factory, make_order, fake_redis):
    order = await make_order(status=OrderStatusEnum.preparing, estimated_time=10)
    fake_redis.store[TICK_LOCK_KEY] = "1"
    ticker = EstimatedTimeTicker(session_factory, fake_redis, interval=60)

    assert await ticker.tick() is None
    assert (await order_crud.get_order(db, order.order_id)).estimated_time == 10


@pytest.mark.asyncio
async def test_tick_skipped_while_previous_tick_runs(session_factory, fake_redis):
    ticker = EstimatedTimeTicker(session_factory, fake_redis, interval=60)
    ticker._busy = True

    assert await ticker.tick() is None
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_start_and_stop(session_factory, fake_redis):
    ticker = EstimatedTimeTicker(session_factory, fake_redis, interval=3600)
    ticker.start()
    await asyncio.sleep(0)
    assert ticker._task is not None

    await ticker.stop()
    assert ticker._task is None


class UnreachableRedis:
    async def set(self, *args, **kwargs):
        raise RedisConnectionError("Connection refused")


@pytest.mark.asyncio
async def test_tick_runs_without_redis(db, session_factory, make_order, caplog):
    order = await make_order(status=OrderStatusEnum.preparing, estimated_time=3)
    ticker = EstimatedTimeTicker(session_factory, UnreachableRedis(), interval=60)

    with caplog.at_level(logging.WARNING, logger="food_court.tasks.estimated_time"):
        assert await ticker.tick() == 1
    assert (await order_crud.get_order(db, order.order_id)).estimated_time == 2
    assert "Tick lock unavailable" in caplog.text
    assert ticker._busy is False
