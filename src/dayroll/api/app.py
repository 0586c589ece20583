# src/dayroll/api/app.py

"""
HTTP surface (Flask).

Thin CRUD routes over the stores held by AppState. JSON uses camelCase field names
(`profileId`, `currentProfileId`) like the mobile client.

Status codes:
- ValidationError    -> 400
- NotFoundError      -> 404
- InvariantViolation -> 409
- PersistenceFailure -> 503
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request

from ..core.dates import canonical_day
from ..core.errors import (
    DayrollError,
    InvariantViolation,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
)
from ..core.state import AppState
from ..tasks.rollover import RolloverResult

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[DayrollError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (InvariantViolation, 409),
    (PersistenceFailure, 503),
]


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    return data


def _rollover_to_dict(result: RolloverResult) -> dict[str, Any]:
    return {
        "ran": result.ran,
        "today": result.today,
        "sourceDates": list(result.source_dates),
        "created": [t.to_dict() for t in result.created],
    }


def create_app(state: AppState) -> Flask:
    app = Flask("dayroll")
    app.config["DAYROLL_STATE"] = state

    @app.errorhandler(DayrollError)
    def _handle_domain_error(exc: DayrollError):
        status = 500
        for cls, code in _STATUS_BY_ERROR:
            if isinstance(exc, cls):
                status = code
                break
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc)
        else:
            logger.debug("%s %s rejected (%s): %s", request.method, request.path, status, exc)
        return jsonify({"error": str(exc)}), status

    # ---- health ----

    @app.get("/health")
    def health():
        return jsonify({"ok": True, "today": state.today()})

    # ---- tasks ----

    @app.get("/tasks")
    def list_tasks():
        profile_id = request.args.get("profileId") or state.profiles.current_profile_id
        day = request.args.get("date")
        if day:
            tasks = state.tasks.list_tasks(profile_id, day)
        else:
            tasks = state.tasks.list_tasks_for_profile(profile_id)
        return jsonify([t.to_dict() for t in tasks])

    @app.post("/tasks")
    def create_task():
        body = _json_body()
        profile_id = body.get("profileId")
        if profile_id is None:
            profile_id = state.profiles.current_profile_id
        task = state.tasks.add_task(
            body.get("text"),
            body.get("date") or state.selected_date,
            profile_id,
        )
        return jsonify(task.to_dict()), 201

    @app.get("/tasks/<int:task_id>")
    def get_task(task_id: int):
        task = state.tasks.get_task(task_id)
        if task is None:
            raise NotFoundError(f"task {task_id} not found")
        return jsonify(task.to_dict())

    @app.patch("/tasks/<int:task_id>")
    def update_task(task_id: int):
        body = _json_body()
        task = state.tasks.update_task(
            task_id,
            completed=body.get("completed"),
            text=body.get("text"),
        )
        if task is None:
            raise NotFoundError(f"task {task_id} not found")
        return jsonify(task.to_dict())

    @app.delete("/tasks/<int:task_id>")
    def delete_task(task_id: int):
        # Idempotent: deleting an unknown id is still "gone".
        state.tasks.delete_task(task_id)
        return "", 204

    # ---- profiles ----

    @app.get("/profiles")
    def list_profiles():
        return jsonify([p.to_dict() for p in state.profiles.list_profiles()])

    @app.post("/profiles")
    def create_profile():
        body = _json_body()
        profile = state.profiles.add_profile(body.get("name"))
        return jsonify(profile.to_dict()), 201

    @app.patch("/profiles/<int:profile_id>")
    def rename_profile(profile_id: int):
        body = _json_body()
        profile = state.profiles.rename_profile(profile_id, body.get("name"))
        if profile is None:
            raise NotFoundError(f"profile {profile_id} not found")
        return jsonify(profile.to_dict())

    @app.delete("/profiles/<int:profile_id>")
    def delete_profile(profile_id: int):
        state.profiles.delete_profile(profile_id)
        return "", 204

    # ---- selection ----

    def _selection() -> dict[str, Any]:
        return {
            "currentProfileId": state.profiles.current_profile_id,
            "selectedDate": state.selected_date,
            "today": state.today(),
        }

    @app.get("/selection")
    def get_selection():
        return jsonify(_selection())

    @app.put("/selection")
    def put_selection():
        body = _json_body()
        day = body.get("selectedDate")
        # A bad date must fail before the profile switch commits.
        day = canonical_day(day) if day is not None else None
        with state.lock:
            if body.get("currentProfileId") is not None:
                state.profiles.set_current_profile(body["currentProfileId"])
            if day is not None:
                state.select_date(day)
        return jsonify(_selection())

    # ---- rollover ----

    @app.post("/rollover")
    def rollover():
        return jsonify(_rollover_to_dict(state.rollover.check_and_rollover()))

    return app
