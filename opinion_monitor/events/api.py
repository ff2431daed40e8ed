from __future__ import annotations

from typing import Callable

from flask import Blueprint, current_app, jsonify, request

from opinion_monitor.errors import InvalidTimeRange
from opinion_monitor.events.service import EventsService, ServiceResult

bp = Blueprint("events_api", __name__, url_prefix="/api/events")

DEFAULT_RANGE = "7d"
EXTENSION_KEY = "events_service"


def _service() -> EventsService:
    return current_app.extensions[EXTENSION_KEY]


def _respond(result: ServiceResult):
    return jsonify(result.to_dict()), result.status


def _ranged(call: Callable[[str], ServiceResult]):
    token = request.args.get("timeRange", DEFAULT_RANGE)
    try:
        return _respond(call(token))
    except InvalidTimeRange as exc:
        return jsonify({"success": False, "data": None, "message": str(exc)}), 400


@bp.route("/")
def event_list():
    category = request.args.get("category") or None
    search = request.args.get("search") or None
    limit = request.args.get("limit", type=int)
    if limit is not None and limit < 1:
        return jsonify({"success": False, "data": None, "message": "limit must be a positive integer"}), 400
    return _ranged(lambda token: _service().get_event_list(token, category=category, search=search, limit=limit))


@bp.route("/hot")
def hot_list():
    return _ranged(lambda token: _service().get_hot_list(token))


@bp.route("/categories")
def categories():
    return _ranged(lambda token: _service().get_event_categories(token))


@bp.route("/trend")
def trend():
    return _ranged(lambda token: _service().get_trend_data(token))


@bp.route("/<event_id>")
def event_detail(event_id: str):
    return _respond(_service().get_event_detail(event_id))


@bp.route("/<event_id>/timeseries")
def event_time_series(event_id: str):
    return _respond(_service().get_event_time_series(event_id))


@bp.route("/<event_id>/trends")
def event_trends(event_id: str):
    return _respond(_service().get_event_trends(event_id))


@bp.route("/<event_id>/influence-users")
def influence_users(event_id: str):
    return _respond(_service().get_influence_users(event_id))


@bp.route("/<event_id>/geographic")
def geographic(event_id: str):
    return _respond(_service().get_event_geographic(event_id))


@bp.route("/<event_id>/keywords")
def keywords(event_id: str):
    return _respond(_service().get_event_keywords(event_id))
