"""FastAPI server for programmatic team-engine access."""

from __future__ import annotations

import math
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import click
from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder

from teamengine import __version__
from teamengine.engine.collaboration import CollaborationEngine
from teamengine.models import ConflictData, ConflictType, ReviewPriority, TaskPriority
from teamengine.team.loader import SAMPLE_TEAM

_start_time = time.monotonic()
engine = CollaborationEngine(SAMPLE_TEAM)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the engine (and its metrics sampler) with the server, stop it on shutdown."""
    await engine.initialize()
    try:
        yield
    finally:
        await engine.shutdown()


app = FastAPI(
    title="Team Engine API",
    version=__version__,
    description="Reviewer, assignee, mediator and mentor suggestions for a development team",
    lifespan=lifespan,
)


def _disabled(feature: str) -> HTTPException:
    return HTTPException(status_code=409, detail=f"{feature} is disabled")


@app.get("/api/health")
async def health() -> dict[str, Any]:
    """Health check."""
    uptime = time.monotonic() - _start_time
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(uptime, 1),
        "members": len(engine.team),
    }


@app.get("/api/members")
async def members() -> dict[str, Any]:
    """Current team snapshot."""
    team = engine.team_members()
    return {"members": jsonable_encoder(team), "count": len(team)}


@app.post("/api/reviews")
async def reviews(request: dict[str, Any]) -> dict[str, Any]:
    """Suggest reviewers for a change."""
    change_id = request.get("change_id", "")
    author = request.get("author", "")
    if not change_id or not author:
        return {"error": "change_id and author are required"}

    try:
        priority = ReviewPriority(request.get("priority", "medium"))
    except ValueError:
        return {"error": f"unknown priority {request.get('priority')!r}"}

    assignment = engine.suggest_reviewers(
        change_id, author, list(request.get("files", [])), priority
    )
    if assignment is None:
        raise _disabled("automatic code review")
    return jsonable_encoder(assignment)


@app.post("/api/tasks")
async def tasks(request: dict[str, Any]) -> dict[str, Any]:
    """Rank assignees for a task."""
    task = request.get("task", "")
    if not task:
        return {"error": "task is required"}

    try:
        priority = TaskPriority(request.get("priority", "medium"))
        effort = float(request.get("effort_hours", 0))
    except (TypeError, ValueError):
        return {"error": "invalid priority or effort_hours"}
    if not math.isfinite(effort) or effort < 0:
        return {"error": "effort_hours must be a finite number >= 0"}

    coordination = engine.coordinate_task(
        task,
        list(request.get("required_skills", [])),
        effort,
        priority,
        description=request.get("description", ""),
    )
    if coordination is None:
        raise _disabled("team coordination")
    return jsonable_encoder(coordination)


@app.post("/api/conflicts")
async def create_conflict(request: dict[str, Any]) -> dict[str, Any]:
    """Detect a conflict from a payload, or report one of an explicit type."""
    involved = list(request.get("involved_members", []))
    data = request.get("data", {})

    if "type" in request:
        try:
            conflict_type = ConflictType(request["type"])
        except ValueError:
            return {"error": f"unknown conflict type {request['type']!r}"}
        result = engine.report_conflict(
            conflict_type, ConflictData.from_dict(data if isinstance(data, dict) else {}), involved
        )
        if result is None:
            raise _disabled("conflict resolution")
        return {"conflict": jsonable_encoder(result)}

    if not engine.config.conflict_resolution:
        raise _disabled("conflict resolution")
    result = engine.detect_conflict(data if isinstance(data, dict) else {}, involved)
    # Low-severity payloads are not recorded
    return {"conflict": jsonable_encoder(result) if result is not None else None}


@app.get("/api/conflicts")
async def list_conflicts() -> dict[str, Any]:
    """Unresolved conflicts."""
    active = engine.active_conflicts()
    return {"conflicts": jsonable_encoder(active), "count": len(active)}


@app.post("/api/conflicts/{conflict_id}/{action}")
async def conflict_action(conflict_id: str, action: str) -> dict[str, Any]:
    """Advance a conflict: start, resolve or escalate."""
    transitions = {
        "start": engine.conflicts.start,
        "resolve": engine.conflicts.resolve,
        "escalate": engine.conflicts.escalate,
    }
    if action not in transitions:
        raise HTTPException(status_code=404, detail=f"unknown action {action}")
    try:
        updated = transitions[action](conflict_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"conflict {conflict_id} not found") from None
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"conflict": jsonable_encoder(updated)}


@app.post("/api/knowledge-gaps")
async def knowledge_gaps() -> dict[str, Any]:
    """Run one knowledge-gap pass."""
    analysis = engine.identify_knowledge_gaps()
    return {
        "transfers": jsonable_encoder(analysis.transfers),
        "unaddressable": jsonable_encoder(analysis.unaddressable),
        "open_transfers": len(engine.knowledge_transfers()),
    }


@app.get("/api/metrics")
async def metrics(sample: bool = False) -> dict[str, Any]:
    """Retained metric snapshots, optionally taking a fresh sample first."""
    if sample:
        engine.sample_metrics()
    history = engine.metrics_history()
    return {
        "latest": jsonable_encoder(history[-1]) if history else None,
        "retained": len(history),
    }


@click.command()
@click.option("--port", default=3849, help="Port to listen on")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
def main(port: int, host: str) -> None:
    """Start the Team Engine API server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)
