"""Ограниченный пул фоновых задач.

Сюда уходит всё, что не должно задерживать ответ: создание теневого аккаунта у
партнёра и уведомления в ops-чат. Очередь ограничена, при переполнении задача
отбрасывается с предупреждением.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from loguru import logger

JobFactory = Callable[[], Awaitable[object]]


class BackgroundRunner:
    def __init__(self, workers: int = 4, queue_size: int = 1000) -> None:
        self._workers_count = workers
        self._queue: asyncio.Queue[tuple[str, JobFactory]] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._workers)

    async def start(self) -> None:
        if self.running:
            return
        self._workers = [
            asyncio.create_task(self._worker_loop(), name=f"background-worker-{idx}")
            for idx in range(self._workers_count)
        ]
        logger.info("BackgroundRunner запущен ({count} воркеров)", count=self._workers_count)

    async def stop(self, drain: bool = True) -> None:
        if drain and self.running:
            await self._queue.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("BackgroundRunner остановлен")

    def submit(self, name: str, factory: JobFactory) -> bool:
        """Ставит задачу в очередь, не дожидаясь её выполнения."""

        try:
            self._queue.put_nowait((name, factory))
        except asyncio.QueueFull:
            logger.warning("Очередь фоновых задач переполнена, задача {name} отброшена", name=name)
            return False
        return True

    async def join(self) -> None:
        await self._queue.join()

    async def _worker_loop(self) -> None:
        while True:
            name, factory = await self._queue.get()
            try:
                await factory()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.opt(exception=exc).error("Фоновая задача {name} упала: {error}", name=name, error=exc)
            finally:
                self._queue.task_done()


__all__ = ["BackgroundRunner", "JobFactory"]
