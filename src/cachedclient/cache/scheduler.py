"""Background refresh scheduling, one task per cache key.

Two kinds of task, chosen by :func:`~cachedclient.cache.schedule.resolve_schedule`:

* :class:`~cachedclient.cache.schedule.FixedPeriod` -- a daemon thread per
  key running a fixed-rate ticker. Missed ticks are dropped, never queued.
* :class:`~cachedclient.cache.schedule.CronRules` -- a job on one shared
  APScheduler :class:`BackgroundScheduler`, started on first use and shut
  down exactly once by :meth:`RefreshScheduler.shutdown`.

Every key owns a :class:`threading.Event` as its cancellation signal. The
job is wrapped so it checks the signal first and becomes a no-op once the
key is cancelled. Cancelling pops the task from the registry before
setting the signal, so it is set at most once, and removes the cron job
from the shared evaluator. A refresh already running when a key is
cancelled is allowed to finish.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from cachedclient.cache.schedule import CronRules, FixedPeriod, SchedulePolicy, build_trigger
from cachedclient.exceptions import CachedClientError

logger = logging.getLogger(__name__)

Job = Callable[[], None]


@dataclass
class _Task:
    key: str
    policy: SchedulePolicy
    stop: threading.Event
    thread: Optional[threading.Thread] = None
    job_id: Optional[str] = None


class RefreshScheduler:
    """Runs a refresh job per key until the key is cancelled.

    Args:
        timezone: Timezone for cron expressions (name or tzinfo). Local
            time when ``None``.
    """

    def __init__(self, timezone: Any = None) -> None:
        self._timezone = timezone
        options: dict[str, Any] = {"jobstores": {"default": MemoryJobStore()}}
        if timezone is not None:
            options["timezone"] = timezone
        self._cron = BackgroundScheduler(**options)
        self._tasks: dict[str, _Task] = {}
        self._lock = threading.Lock()
        self._shut_down = False

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def schedule(self, key: str, policy: SchedulePolicy, job: Job) -> None:
        """Start running *job* for *key* according to *policy*.

        Any task already scheduled for *key* is cancelled first.

        Raises:
            CachedClientError: If the scheduler has been shut down.
            ScheduleError: If a cron policy cannot be turned into a trigger.
        """
        stop = threading.Event()
        task = _Task(key=key, policy=policy, stop=stop)
        guarded = _guard(key, stop, job)

        with self._lock:
            if self._shut_down:
                raise CachedClientError("refresh scheduler has been shut down")

            previous = self._tasks.pop(key, None)
            if previous is not None:
                self._close(previous)

            if isinstance(policy, FixedPeriod):
                task.thread = threading.Thread(
                    target=self._run_ticker,
                    args=(key, policy.period.total_seconds(), stop, guarded),
                    name=f"cachedclient-refresh:{key}",
                    daemon=True,
                )
                task.thread.start()
            elif isinstance(policy, CronRules):
                trigger = build_trigger(policy, timezone=self._timezone)
                self._cron.add_job(
                    guarded,
                    trigger=trigger,
                    id=key,
                    name=f"refresh {key}",
                    replace_existing=True,
                    max_instances=1,
                    coalesce=True,
                )
                task.job_id = key
                if not self._cron.running:
                    self._cron.start()
            else:
                raise TypeError(f"unsupported schedule policy: {policy!r}")

            self._tasks[key] = task

        logger.debug("Scheduled refresh for %s with %s", key, policy)

    def cancel(self, key: str) -> bool:
        """Stop scheduling *key*. Safe to call repeatedly.

        Returns:
            ``True`` if a task was cancelled, ``False`` if none was active.
        """
        with self._lock:
            task = self._tasks.pop(key, None)
            if task is None:
                return False
            self._close(task)
        logger.debug("Cancelled refresh for %s", key)
        return True

    def shutdown(self) -> None:
        """Cancel every task and stop the shared cron evaluator. Idempotent."""
        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True
            tasks = list(self._tasks.values())
            self._tasks.clear()
            for task in tasks:
                self._close(task)
            if self._cron.running:
                self._cron.shutdown(wait=False)
        logger.debug("Refresh scheduler shut down (%d tasks cancelled)", len(tasks))

    def is_scheduled(self, key: str) -> bool:
        with self._lock:
            return key in self._tasks

    def scheduled_keys(self) -> list[str]:
        with self._lock:
            return list(self._tasks)

    def cron_job_ids(self) -> list[str]:
        """IDs of the jobs currently registered with the shared evaluator."""
        return [job.id for job in self._cron.get_jobs()]

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _close(self, task: _Task) -> None:
        # Caller holds self._lock and has already removed task from the registry.
        task.stop.set()
        if task.job_id is not None:
            try:
                self._cron.remove_job(task.job_id)
            except JobLookupError:
                pass

    @staticmethod
    def _run_ticker(key: str, interval: float, stop: threading.Event, job: Job) -> None:
        next_run = time.monotonic() + interval
        while not stop.wait(max(0.0, next_run - time.monotonic())):
            job()
            next_run += interval
            now = time.monotonic()
            if next_run <= now:
                # Drop ticks missed while the job was running.
                next_run += (int((now - next_run) // interval) + 1) * interval
        logger.debug("Ticker for %s stopped", key)


def _guard(key: str, stop: threading.Event, job: Job) -> Job:
    """Wrap *job* so it no-ops after cancellation and never raises."""

    def run() -> None:
        if stop.is_set():
            return
        try:
            job()
        except Exception:
            logger.exception("Unexpected error in scheduled refresh for %s", key)

    return run
