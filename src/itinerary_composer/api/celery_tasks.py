"""Celery tasks for the optional Redis-backed search queue."""

from __future__ import annotations

import time
from typing import Dict

from itinerary_composer.api.celery_app import celery_app
from itinerary_composer.api.schemas import JobSearchPayload
from itinerary_composer.api.search_runner import run_search


@celery_app.task(bind=True, name="itinerary_composer.search")
def search_task(self, payload: Dict[str, object]) -> Dict[str, object]:
    def progress_cb(stage: str, progress: float) -> None:
        self.update_state(
            state="PROGRESS",
            meta={"stage": stage, "progress": progress, "updated_at": time.time()},
        )

    return run_search(JobSearchPayload(**payload), progress_cb=progress_cb)
