"""Celery application for the optional Redis-backed search queue."""

from __future__ import annotations

import os

from celery import Celery

BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
SEARCH_QUEUE = os.getenv("ITINERARY_COMPOSER_SEARCH_QUEUE", "searches")
SEARCH_TIME_LIMIT = int(os.getenv("ITINERARY_COMPOSER_SEARCH_TIME_LIMIT", "600"))

celery_app = Celery("itinerary_composer", broker=BROKER_URL, backend=RESULT_BACKEND)
celery_app.conf.update(
    task_track_started=True,
    task_ignore_result=False,
    task_time_limit=SEARCH_TIME_LIMIT,
    task_routes={"itinerary_composer.search": {"queue": SEARCH_QUEUE}},
    result_expires=24 * 3600,
    broker_connection_retry_on_startup=True,
)
celery_app.autodiscover_tasks(["itinerary_composer.api"], related_name="celery_tasks")
