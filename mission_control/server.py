#!/usr/bin/env python3
"""
Mission Control Server
-----------------------
JSON API over the Mission Control document (tasks, notes, links).

Usage:
    mission-control --port 3333 --data ~/mission-control.json
    python -m mission_control.server

API (all under /api):
    GET  /data                    → whole document
    GET  /today                   → { todayTasks, overdueTasks, upcomingTasks, recentActivity }
    POST /quick-capture           → body { text, type } → created task | note | link
    POST /quick-capture/preview   → body { text, type } → parsed draft, nothing stored
    GET|POST /tasks, PUT|DELETE /tasks/<id>, POST /tasks/<id>/comments
    GET|POST /notes, PUT|DELETE /notes/<id>
    GET|POST /links, PUT|DELETE /links/<id>
    POST /tags                    → body { name, color }
    GET  /search?q=...            → { tasks, notes, links }
    GET|PUT /settings
    GET  /activity
"""
import argparse
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from flask import Blueprint, Flask, current_app, jsonify, request

from .activity import recent
from .capture import CaptureType, QuickCapture
from .config import Config
from .link_titles import fetch_title
from .repository import JsonFileRepository, StorageError
from .search import search
from .store import DocumentStore, EntityNotFound, ValidationError
from .temporal import classify

USER_HEADER = "X-User"

api = Blueprint("api", __name__, url_prefix="/api")


# ── Helpers ──────────────────────────────────────────────────────────────────

def _store() -> DocumentStore:
    return current_app.config["STORE"]


def _capture() -> QuickCapture:
    return current_app.config["CAPTURE"]


def _config() -> Config:
    return current_app.config["MC_CONFIG"]


def _body() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    return data


def _user() -> Optional[str]:
    return request.headers.get(USER_HEADER, "").strip() or None


def _capture_type(data: Dict[str, Any]) -> CaptureType:
    raw = data.get("type") or "task"
    if not CaptureType.is_valid(raw):
        raise ValidationError(f"type must be one of task, note, link (got {raw!r})")
    return CaptureType.from_str(raw)


# ── Read views ───────────────────────────────────────────────────────────────

@api.route("/data")
def get_data():
    return jsonify(_store().load().to_dict())


@api.route("/today")
def get_today():
    cfg = _config()
    document = _store().load()
    view = classify(document.tasks, upcoming_days=cfg.upcoming_days)
    return jsonify({
        "todayTasks":     [t.to_dict() for t in view.today],
        "overdueTasks":   [t.to_dict() for t in view.overdue],
        "upcomingTasks":  [t.to_dict() for t in view.upcoming],
        "recentActivity": [a.to_dict() for a in recent(document, cfg.recent_activity)],
    })


@api.route("/search")
def get_search():
    return jsonify(search(_store().load(), request.args.get("q", "")).to_dict())


@api.route("/activity")
def get_activity():
    return jsonify([a.to_dict() for a in _store().load().activity])


# ── Quick capture ────────────────────────────────────────────────────────────

@api.route("/quick-capture", methods=["POST"])
def post_quick_capture():
    data = _body()
    entity = _capture().capture(data.get("text"), _capture_type(data), user=_user())
    return jsonify(entity.to_dict()), 201


@api.route("/quick-capture/preview", methods=["POST"])
def post_quick_capture_preview():
    data = _body()
    draft = _capture().preview(data.get("text"), _capture_type(data))
    return jsonify(draft.to_dict())


# ── Tasks ────────────────────────────────────────────────────────────────────

@api.route("/tasks", methods=["GET"])
def list_tasks():
    return jsonify([t.to_dict() for t in _store().list_tasks()])


@api.route("/tasks", methods=["POST"])
def create_task():
    return jsonify(_store().create_task(_body(), user=_user()).to_dict()), 201


@api.route("/tasks/<int:task_id>", methods=["PUT"])
def update_task(task_id):
    return jsonify(_store().update_task(task_id, _body(), user=_user()).to_dict())


@api.route("/tasks/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    _store().delete_task(task_id, user=_user())
    return jsonify({"ok": True})


@api.route("/tasks/<int:task_id>/comments", methods=["POST"])
def add_comment(task_id):
    data = _body()
    comment = _store().add_comment(task_id, data.get("text"), author=data.get("author") or _user())
    return jsonify(comment.to_dict()), 201


# ── Notes ────────────────────────────────────────────────────────────────────

@api.route("/notes", methods=["GET"])
def list_notes():
    return jsonify([n.to_dict() for n in _store().list_notes()])


@api.route("/notes", methods=["POST"])
def create_note():
    return jsonify(_store().create_note(_body(), user=_user()).to_dict()), 201


@api.route("/notes/<int:note_id>", methods=["PUT"])
def update_note(note_id):
    return jsonify(_store().update_note(note_id, _body(), user=_user()).to_dict())


@api.route("/notes/<int:note_id>", methods=["DELETE"])
def delete_note(note_id):
    _store().delete_note(note_id, user=_user())
    return jsonify({"ok": True})


# ── Links ────────────────────────────────────────────────────────────────────

@api.route("/links", methods=["GET"])
def list_links():
    return jsonify([l.to_dict() for l in _store().list_links()])


@api.route("/links", methods=["POST"])
def create_link():
    return jsonify(_store().create_link(_body(), user=_user()).to_dict()), 201


@api.route("/links/<int:link_id>", methods=["PUT"])
def update_link(link_id):
    return jsonify(_store().update_link(link_id, _body(), user=_user()).to_dict())


@api.route("/links/<int:link_id>", methods=["DELETE"])
def delete_link(link_id):
    _store().delete_link(link_id, user=_user())
    return jsonify({"ok": True})


# ── Tags & settings ──────────────────────────────────────────────────────────

@api.route("/tags", methods=["POST"])
def add_tag():
    data = _body()
    return jsonify(_store().add_tag(data.get("name"), data.get("color")).to_dict()), 201


@api.route("/settings", methods=["GET"])
def get_settings():
    return jsonify(_store().get_settings().to_dict())


@api.route("/settings", methods=["PUT"])
def put_settings():
    return jsonify(_store().update_settings(_body()).to_dict())


# ── Errors ───────────────────────────────────────────────────────────────────

@api.errorhandler(EntityNotFound)
def handle_not_found(e):
    return jsonify({"error": "Not found"}), 404


@api.errorhandler(ValidationError)
def handle_validation(e):
    return jsonify({"error": str(e)}), 400


@api.errorhandler(StorageError)
def handle_storage(e):
    current_app.logger.error(f"Storage failure: {e}")
    return jsonify({"error": str(e)}), 500


# ── App factory ──────────────────────────────────────────────────────────────

def create_app(
    config: Optional[Config] = None,
    store: Optional[DocumentStore] = None,
    title_fetcher: Callable[..., Optional[str]] = fetch_title,
) -> Flask:
    config = config or Config.load()
    if store is None:
        store = DocumentStore(
            JsonFileRepository(config.data_file),
            default_user=config.default_user,
            activity_limit=config.activity_limit,
        )

    app = Flask(__name__)
    app.config["MC_CONFIG"] = config
    app.config["STORE"] = store
    app.config["CAPTURE"] = QuickCapture(
        store,
        title_fetcher=title_fetcher,
        fetch_timeout=config.link_title_timeout,
        max_bytes=config.link_title_max_bytes,
    )
    app.register_blueprint(api)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "data_file": config.data_file})

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Mission Control Server")
    parser.add_argument("--config", help="Path to config.yaml (overrides MISSION_CONTROL_CONFIG)")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--data", help="Path to the JSON document (overrides MISSION_CONTROL_DATA)")
    args = parser.parse_args()

    config = Config.load(args.config)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.data:
        config.data_file = str(Path(args.data).expanduser())

    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(config)
    print(f"""
╔═══════════════════════════════════════╗
║  Mission Control                      ║
╠═══════════════════════════════════════╣
║  URL:  http://{config.host}:{config.port:<20}║
║  Data: {config.data_file:<31}║
╚═══════════════════════════════════════╝
""")
    app.run(host=config.host, port=config.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
