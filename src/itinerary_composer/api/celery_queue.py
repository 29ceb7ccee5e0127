"""Redis-backed search job registry with Celery integration."""

from __future__ import annotations

import json
import os
import time
from typing import Dict, List, Optional

from celery.result import AsyncResult
from redis import Redis

from itinerary_composer.api.celery_app import celery_app
from itinerary_composer.api.celery_tasks import search_task
from itinerary_composer.api.schemas import JobSearchPayload

_STATUS_BY_STATE = {
    "PENDING": "queued",
    "RECEIVED": "queued",
    "STARTED": "running",
    "PROGRESS": "running",
    "SUCCESS": "completed",
    "FAILURE": "failed",
    "REVOKED": "cancelled",
}


class CeleryJobQueue:
    def __init__(self) -> None:
        redis_url = os.getenv("ITINERARY_COMPOSER_REDIS_URL", os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"))
        self._redis = Redis.from_url(redis_url, decode_responses=True)
        self._jobs_key = os.getenv("ITINERARY_COMPOSER_JOBS_KEY", "itinerary_composer:jobs")
        self._max_jobs = int(os.getenv("ITINERARY_COMPOSER_MAX_JOBS", "100"))

    def submit_search(self, payload: JobSearchPayload) -> Dict[str, object]:
        task = search_task.delay(payload.model_dump(mode="json"))
        meta = {"id": task.id, "kind": "search", "route": "-".join(payload.route), "created_at": time.time()}
        self._redis.lpush(self._jobs_key, json.dumps(meta, ensure_ascii=True))
        self._redis.ltrim(self._jobs_key, 0, self._max_jobs - 1)
        return self._format_job(meta)

    def list_jobs(self) -> List[Dict[str, object]]:
        seen = set()
        jobs: List[Dict[str, object]] = []
        for meta in self._iter_meta():
            if meta["id"] in seen:
                continue
            seen.add(meta["id"])
            jobs.append(self._format_job(meta))
        return jobs

    def get_job(self, job_id: str) -> Optional[Dict[str, object]]:
        meta = self._find_meta(job_id)
        if not meta:
            return None
        return self._format_job(meta, include_result=True)

    def cancel_job(self, job_id: str) -> Optional[Dict[str, object]]:
        meta = self._find_meta(job_id)
        if not meta:
            return None
        AsyncResult(job_id, app=celery_app).revoke(terminate=True, signal="SIGTERM")
        return self._format_job(meta, include_result=True)

    def _iter_meta(self) -> List[Dict[str, object]]:
        entries = self._redis.lrange(self._jobs_key, 0, self._max_jobs - 1)
        metas: List[Dict[str, object]] = []
        for raw in entries:
            try:
                meta = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(meta, dict) and meta.get("id"):
                metas.append(meta)
        return metas

    def _find_meta(self, job_id: str) -> Optional[Dict[str, object]]:
        return next((meta for meta in self._iter_meta() if meta["id"] == job_id), None)

    def _format_job(self, meta: Dict[str, object], *, include_result: bool = False) -> Dict[str, object]:
        job_id = str(meta["id"])
        result = AsyncResult(job_id, app=celery_app)
        status = _STATUS_BY_STATE.get(result.state, "queued")
        info = result.info if isinstance(result.info, dict) else {}
        progress = 1.0 if status == "completed" else float(info.get("progress", 0.0))
        stage = info.get("stage") or ("Cancelled" if status == "cancelled" else result.state.title())
        updated_at = info.get("updated_at")
        if not updated_at:
            updated_at = result.date_done.timestamp() if getattr(result, "date_done", None) else time.time()

        payload: Dict[str, object] = {
            "id": job_id,
            "kind": meta.get("kind", "search"),
            "route": meta.get("route"),
            "status": status,
            "progress": round(max(0.0, min(progress, 1.0)), 3),
            "stage": stage,
            "created_at": meta.get("created_at") or time.time(),
            "updated_at": updated_at,
            "error": str(result.info) if status == "failed" else None,
        }
        if include_result and status == "completed":
            payload["result"] = result.result
        return payload
