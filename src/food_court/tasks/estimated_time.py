"""
Минутный тик обратного отсчёта estimated_time.

Работает в фоне вместе с приложением. Одновременно тикает только один
процесс: перед тиком берётся ключ в Redis (SET NX с истечением чуть меньше
периода), и он не освобождается, так что за период счётчик уменьшается
один раз даже при нескольких воркерах.
"""
import asyncio
import logging
from typing import Optional

from redis.exceptions import RedisError

from food_court.crud.order import decrement_estimated_times

logger = logging.getLogger(__name__)

TICK_LOCK_KEY = "locks:estimated-time-tick"


class EstimatedTimeTicker:
    def __init__(self, session_factory, redis, interval: float, lock_key: str = TICK_LOCK_KEY):
        self.session_factory = session_factory
        self.redis = redis
        self.interval = interval
        self.lock_key = lock_key
        self._busy = False
        self._task: Optional[asyncio.Task] = None

    async def _acquire(self) -> bool:
        """
        Без Redis тикаем под одним лишь локальным флагом _busy:
        при нескольких воркерах отсчёт может уйти быстрее, но не встанет.
        """
        ttl_ms = max(int(self.interval * 900), 1)
        try:
            return bool(await self.redis.set(self.lock_key, "1", nx=True, px=ttl_ms))
        except RedisError as exc:
            logger.warning("Tick lock unavailable, ticking without it: %s", exc)
            return True

    async def tick(self) -> Optional[int]:
        """
        Один тик. None, если пропущен (предыдущий ещё идёт или тикает другой процесс).
        """
        if self._busy:
            logger.debug("Previous estimated-time tick still running, skipping")
            return None

        self._busy = True
        try:
            if not await self._acquire():
                logger.debug("Estimated-time tick held by another worker")
                return None
            async with self.session_factory() as db:
                updated = await decrement_estimated_times(db)
            logger.info("Estimated-time tick: %d order(s) updated", updated)
            return updated
        finally:
            self._busy = False

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("Estimated-time tick failed")

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info("Estimated-time ticker started, every %ss", self.interval)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Estimated-time ticker stopped")
