"""FastAPI entrypoint for the itinerary composer UI."""

from __future__ import annotations

import os
from typing import Dict, List

from fastapi import FastAPI, HTTPException

from itinerary_composer.adapters.io.exports import (
    serialize_calendar,
    serialize_combination,
    serialize_leg_view,
    serialize_outcome,
    serialize_toggle,
)
from itinerary_composer.api.jobs import Job, JobQueue
from itinerary_composer.api.schemas import (
    AvailabilityPayload,
    CombinationsPayload,
    JobSearchPayload,
    RangePayload,
    SearchPayload,
    SessionPayload,
    SessionTogglePayload,
    TogglePayload,
)
from itinerary_composer.api.search_runner import build_driver, build_engine, close_driver, run_search
from itinerary_composer.api.sessions import Session, SessionRegistry
from itinerary_composer.core.config import EngineSettings, load_settings
from itinerary_composer.core.errors import ProviderError, SearchCancelled, ValidationError
from itinerary_composer.core.models import DateRange
from itinerary_composer.core.normalization import build_meta
from itinerary_composer.modules.availability.calendar import build_calendar, validate_date_range
from itinerary_composer.modules.routing.combinations import compute_combinations, displayable_legs
from itinerary_composer.modules.routing.selection import apply_visibility, toggle_selection
from itinerary_composer.pipeline.orchestrator import validate_route

app = FastAPI(title="Itinerary Composer API")

QUEUE_BACKEND = os.getenv("ITINERARY_COMPOSER_QUEUE_BACKEND", "memory").strip().lower()
USE_CELERY = QUEUE_BACKEND == "celery"
if USE_CELERY:
    try:
        from itinerary_composer.api.celery_queue import CeleryJobQueue
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "Celery queue requested but optional dependencies are missing. "
            "Install extras with `pip install itinerary-composer[queue]`."
        ) from exc
    CELERY_QUEUE = CeleryJobQueue()
else:
    JOB_QUEUE = JobQueue()

SESSIONS = SessionRegistry()


def _validated_range(payload: RangePayload, settings: EngineSettings) -> DateRange:
    try:
        validate_route(payload.route)
        return validate_date_range(payload.start_date, payload.end_date, max_days=settings.max_range_days)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _session_or_404(session_id: str) -> Session:
    session = SESSIONS.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _run_search_job(job: Job, payload: JobSearchPayload) -> Dict[str, object]:
    def progress_cb(stage: str, progress: float) -> None:
        JOB_QUEUE.update(job.id, stage=stage, progress=progress)

    def engine_cb(engine: object) -> None:
        JOB_QUEUE.attach_engine(job.id, engine)
        if job.cancel_event.is_set():
            raise SearchCancelled(0, 0)

    return run_search(payload, progress_cb=progress_cb, engine_cb=engine_cb)


@app.get("/api/health")
def health() -> Dict[str, object]:
    return {"status": "ok", "meta": build_meta()}


@app.post("/api/availability")
async def availability(payload: AvailabilityPayload) -> Dict[str, object]:
    settings = load_settings()
    date_range = _validated_range(payload, settings)
    driver = build_driver(payload.api_key, settings)
    try:
        records = await driver.fetch_availability(payload.route, date_range.start)
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await close_driver(driver)
    in_range = [record for record in records if date_range.start <= record.date <= date_range.end]
    calendar = build_calendar(in_range, payload.route)
    return {"route": validate_route(payload.route), "days": serialize_calendar(calendar), "meta": build_meta()}


@app.post("/api/combinations")
def combinations(payload: CombinationsPayload) -> Dict[str, object]:
    segments = sorted((segment.to_segment() for segment in payload.segments), key=lambda item: item.index)
    stopover = payload.stopover.to_spec() if payload.stopover else None
    combos = compute_combinations(segments, stopover, settings=load_settings())
    shown = displayable_legs(segments, combos)
    return {
        "combinations": [serialize_combination(combo, payload.base_date) for combo in combos],
        "legs": [serialize_leg_view(view, payload.base_date) for view in apply_visibility(shown, combos, {})],
    }


@app.post("/api/selection/toggle")
def selection_toggle(payload: TogglePayload) -> Dict[str, object]:
    combos = [tuple(leg.to_leg() for leg in combo) for combo in payload.combinations]
    selection = {index: [leg.to_leg() for leg in legs] for index, legs in payload.selection.items()}
    shown = [leg.to_leg() for leg in payload.shown] if payload.shown is not None else None
    segments = None
    if payload.segments is not None:
        segments = sorted((segment.to_segment() for segment in payload.segments), key=lambda item: item.index)
    result = toggle_selection(
        combos,
        selection,
        payload.leg.to_leg(),
        payload.segment_index,
        shown=shown,
        segments=segments,
    )
    return serialize_toggle(result, payload.base_date)


@app.post("/api/sessions")
async def create_session(payload: SessionPayload) -> Dict[str, object]:
    session, evicted = SESSIONS.create(build_engine(payload.api_key))
    for stale in evicted:
        await close_driver(stale.engine.driver)
    return session.to_dict()


@app.get("/api/sessions/{session_id}")
def get_session(session_id: str) -> Dict[str, object]:
    session = _session_or_404(session_id)
    engine = session.engine
    base_date = engine.date_range.start if engine.date_range else None
    payload = session.to_dict()
    payload["legs"] = [serialize_leg_view(view, base_date) for view in engine.legs]
    return payload


@app.post("/api/sessions/{session_id}/search")
async def search_session(session_id: str, payload: SearchPayload) -> Dict[str, object]:
    session = _session_or_404(session_id)
    date_range = _validated_range(payload, session.engine.settings)
    stopover = payload.stopover.to_spec() if payload.stopover else None
    session.touch(status="searching")
    try:
        outcome = await session.engine.search(payload.route, date_range, stopover)
    except SearchCancelled as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValidationError as exc:
        session.touch(status="idle", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    session.touch(status="ready")
    return serialize_outcome(outcome)


@app.post("/api/sessions/{session_id}/toggle")
def toggle_session_leg(session_id: str, payload: SessionTogglePayload) -> Dict[str, object]:
    session = _session_or_404(session_id)
    engine = session.engine
    leg = engine.find_leg(payload.segment_index, payload.flight_id.strip().upper(), payload.departs_at)
    if leg is None:
        raise HTTPException(status_code=404, detail="Leg not found")
    result = engine.toggle(leg, payload.segment_index)
    session.touch()
    return serialize_toggle(result, engine.date_range.start if engine.date_range else None)


@app.post("/api/sessions/{session_id}/reset")
def reset_session(session_id: str) -> Dict[str, object]:
    session = _session_or_404(session_id)
    session.engine.reset(reason="reset")
    session.touch(status="idle")
    return session.to_dict()


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str) -> Dict[str, object]:
    session = SESSIONS.drop(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    await close_driver(session.engine.driver)
    return {"id": session_id, "status": "closed"}


@app.post("/api/jobs/search")
def create_search_job(payload: JobSearchPayload) -> Dict[str, object]:
    _validated_range(payload, load_settings())
    if USE_CELERY:
        return CELERY_QUEUE.submit_search(payload)
    job = JOB_QUEUE.submit("search", _run_search_job, payload)
    return job.to_dict()


@app.get("/api/jobs")
def list_jobs() -> Dict[str, List[Dict[str, object]]]:
    if USE_CELERY:
        return {"items": CELERY_QUEUE.list_jobs()}
    return {"items": [job.to_dict() for job in JOB_QUEUE.list()]}


@app.get("/api/jobs/{job_id}")
def get_job(job_id: str) -> Dict[str, object]:
    if USE_CELERY:
        job = CELERY_QUEUE.get_job(job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job
    job = JOB_QUEUE.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.to_dict(include_result=True)


@app.post("/api/jobs/{job_id}/cancel")
def cancel_job(job_id: str) -> Dict[str, object]:
    if USE_CELERY:
        job = CELERY_QUEUE.cancel_job(job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job
    job = JOB_QUEUE.cancel(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.to_dict(include_result=True)
