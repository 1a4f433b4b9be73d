"""
Cooperative scheduler - named periodic tasks on one event loop
"""
import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[None, Awaitable[None]]]


class PeriodicTask:
    """
    Runs `callback` every `interval` seconds until stopped.

    stop() is synchronous: no new run starts after it returns. A run that
    is already awaiting I/O is left to finish; a sleeping task is cancelled.
    """

    def __init__(self, name: str, interval: float, callback: Callback, run_immediately: bool = True):
        self.name = name
        self.interval = interval
        self.callback = callback
        self.run_immediately = run_immediately

        self.runs = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None
        self._stopped = True
        self._sleeping = False

    @property
    def running(self) -> bool:
        return not self._stopped and self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def stop(self):
        self._stopped = True
        if self._task and self._sleeping:
            self._task.cancel()

    async def run_once(self):
        """Invoke the callback, logging instead of raising"""
        self.runs += 1
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            self.failures += 1
            logger.exception("Task %s failed", self.name)

    def _current(self) -> bool:
        return not self._stopped and self._task is asyncio.current_task()

    async def _run(self):
        # A restart replaces _task, so an older loop exits after its in-flight run
        if not self.run_immediately:
            await self._sleep()
        while self._current():
            await self.run_once()
            if not self._current():
                break
            await self._sleep()

    async def _sleep(self):
        self._sleeping = True
        try:
            await asyncio.sleep(self.interval)
        finally:
            self._sleeping = False

    async def wait(self):
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass


class Scheduler:
    """
    Registry of named periodic tasks (poll, dispatch, sync, status).

    Usage:
        scheduler = Scheduler()
        scheduler.add("poll", 5, bot.poll)
        scheduler.start()
        ...
        await scheduler.shutdown()
    """

    def __init__(self):
        self.tasks: Dict[str, PeriodicTask] = {}

    def add(self, name: str, interval: float, callback: Callback, run_immediately: bool = True) -> PeriodicTask:
        if name in self.tasks:
            self.tasks[name].stop()
        task = PeriodicTask(name, interval, callback, run_immediately)
        self.tasks[name] = task
        return task

    def get(self, name: str) -> Optional[PeriodicTask]:
        return self.tasks.get(name)

    def start(self, name: Optional[str] = None):
        for task in self._select(name):
            task.start()

    def stop(self, name: Optional[str] = None):
        for task in self._select(name):
            task.stop()

    def is_running(self, name: str) -> bool:
        task = self.tasks.get(name)
        return bool(task and task.running)

    def _select(self, name: Optional[str]) -> List[PeriodicTask]:
        if name is None:
            return list(self.tasks.values())
        task = self.tasks.get(name)
        return [task] if task else []

    async def shutdown(self):
        """Stop everything and wait for in-flight runs to finish"""
        self.stop()
        await asyncio.gather(*(t.wait() for t in self.tasks.values()))
