"""Block page, list options page and message API for the navigation filter."""

import argparse
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, render_template, request
from flask_socketio import SocketIO

from navfilter.config import BLOCKLIST_KEY, WHITELIST_KEY
from navfilter.decision_engine import NavigationEvent
from navfilter.enforcement import RedirectSink
from navfilter.errors import ListIndexError, NavFilterError, StoreError
from navfilter.list_editor import EDITABLE_KEYS, ListEditor
from navfilter.logger import FilterLogger
from navfilter.main import add_common_arguments, build_config
from navfilter.navigation import NavigationFilter, build_list_editor, build_navigation_filter
from navfilter.settings_store import JsonFileSettingsStore

socketio = SocketIO(async_mode="threading", cors_allowed_origins="*")

DEFAULT_BLOCK_REASON = "Blocked by policy"


class CollectingSink(RedirectSink):
    """Remembers the redirect so it can be returned to the extension."""

    def __init__(self) -> None:
        self.redirect_url: Optional[str] = None

    def redirect(self, tab_id: str, new_url: str) -> None:
        self.redirect_url = new_url


def error_response(message: str, status: int) -> Tuple[Any, int]:
    return jsonify({"success": False, "error": message}), status


def emit_lists(lists: Dict[str, List[str]]) -> None:
    socketio.emit("lists_update", lists)


def create_app(
    editor: ListEditor,
    navigation_filter: Optional[NavigationFilter] = None,
) -> Flask:
    app = Flask(__name__)
    socketio.init_app(app)

    def changed(key: str, patterns: List[str]) -> Tuple[Any, int]:
        emit_lists({key: patterns})
        return jsonify({"success": True, key: patterns}), 200

    @app.errorhandler(StoreError)
    def store_unavailable(exc: StoreError):
        editor.logger.error("List store error: %s", exc.message)
        return error_response(exc.message, 503)

    @app.errorhandler(ListIndexError)
    def index_missing(exc: ListIndexError):
        return error_response(exc.message, 404)

    @app.route("/block")
    def block_page():
        site = request.args.get("site", "")
        reason = request.args.get("reason") or DEFAULT_BLOCK_REASON
        return render_template("block.html", site=site, reason=reason)

    @app.route("/options")
    def options_page():
        return render_template("options.html", keys=EDITABLE_KEYS)

    @app.route("/api/lists")
    def get_lists():
        return jsonify(asyncio.run(editor.lists()))

    @app.route("/api/lists/<key>", methods=["POST"])
    def add_site(key: str):
        if key not in EDITABLE_KEYS:
            return error_response(f"Unknown list: {key}", 404)
        payload = request.get_json(silent=True) or {}
        site = str(payload.get("site") or "").strip()
        if not site:
            return error_response("Site must not be empty", 400)
        return changed(key, asyncio.run(editor.add(key, site)))

    @app.route("/api/lists/<key>/<int:index>", methods=["DELETE"])
    def remove_site(key: str, index: int):
        if key not in EDITABLE_KEYS:
            return error_response(f"Unknown list: {key}", 404)
        return changed(key, asyncio.run(editor.remove(key, index)))

    @app.route("/api/message", methods=["POST"])
    def message():
        payload = request.get_json(silent=True)
        if (
            isinstance(payload, dict)
            and payload.get("type") == "whitelist"
            and not str(payload.get("site") or "").strip()
        ):
            return error_response("Site must not be empty", 400)
        response = asyncio.run(editor.handle_message(payload))
        if response is None:
            return error_response("Unsupported message type", 400)
        if not response.get("success"):
            return jsonify(response), 503
        try:
            emit_lists(asyncio.run(editor.lists()))
        except StoreError as exc:
            editor.logger.warning("Whitelist saved but lists could not be re-read: %s", exc.message)
        return jsonify(response)

    @app.route("/api/navigate", methods=["POST"])
    def navigate():
        if navigation_filter is None:
            return error_response("Navigation filtering is not enabled", 404)
        payload = request.get_json(silent=True) or {}
        try:
            event = NavigationEvent(
                url=str(payload.get("url") or ""),
                tab_id=str(payload.get("tabId", "")),
                frame_id=int(payload.get("frameId", 0)),
                title=str(payload.get("title") or ""),
            )
        except (TypeError, ValueError):
            return error_response("frameId must be an integer", 400)
        sink = CollectingSink()
        decision = asyncio.run(navigation_filter.on_before_navigate(event, sink))
        if sink.redirect_url:
            return jsonify(
                {"action": "redirect", "url": sink.redirect_url, "reason": decision.reason}
            )
        return jsonify({"action": "allow"})

    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Navigation filter block and options pages")
    parser.add_argument("--host", default="127.0.0.1", help="Address to serve on")
    parser.add_argument("--port", type=int, default=5000, help="Port to serve on")
    add_common_arguments(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logger = FilterLogger(args.access_log, args.error_log)
    try:
        config = build_config(args)
    except NavFilterError as exc:
        raise SystemExit(f"Invalid configuration: {exc.message}")
    navigation_filter = build_navigation_filter(
        config, JsonFileSettingsStore(args.store_path), logger
    )
    asyncio.run(navigation_filter.initialize())
    app = create_app(build_list_editor(navigation_filter), navigation_filter)
    logger.info(
        "Serving %s and %s lists on %s:%s", BLOCKLIST_KEY, WHITELIST_KEY, args.host, args.port
    )
    socketio.run(app, host=args.host, port=args.port, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    main()
