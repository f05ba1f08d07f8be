# reminder_bot/scheduler/registry.py
from __future__ import annotations

import logging
from typing import Dict, List

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError

logger = logging.getLogger(__name__)


class JobRegistry:
    """
    record_id -> взведённая задача APScheduler.
    Живёт только в памяти процесса, на старте собирается заново из БД.
    Трогается только из ReminderService на event loop, поэтому без локов.
    """

    def __init__(self) -> None:
        self._jobs: Dict[int, Job] = {}

    def register(self, rid: int, job: Job) -> None:
        self._jobs[rid] = job

    def cancel(self, rid: int) -> bool:
        job = self._jobs.pop(rid, None)
        if job is None:
            return False
        try:
            job.remove()
        except JobLookupError:
            # разовая задача уже отстрелялась, планировщик её выкинул сам
            logger.debug("job for reminder_id=%s already gone", rid)
        return True

    def remove(self, rid: int) -> None:
        self._jobs.pop(rid, None)

    def ids(self) -> List[int]:
        return sorted(self._jobs)

    def __contains__(self, rid: object) -> bool:
        return rid in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)
