from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request

# Ensure project root is importable when running this file directly
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stacktoe import GameController, Mode, Player, Selection, Settings  # noqa: E402
from stacktoe.model import Move, parse_size, state_from_dict  # noqa: E402

logger = logging.getLogger(__name__)

# Upper bound for requests that ask to block on the engine.
WAIT_TIMEOUT_S = 120.0


def _wants_wait(payload_value: object, query_value: Optional[str]) -> bool:
    if payload_value is True:
        return True
    return (query_value or "").strip().lower() in ("1", "true", "yes")


def create_app(controller: Optional[GameController] = None, settings: Optional[Settings] = None) -> Flask:
    app = Flask(__name__)

    settings = settings or Settings.from_env()
    controller = controller or GameController(settings=settings)
    app.config["CONTROLLER"] = controller

    def respond(status: int = 200, error: Optional[str] = None):
        data = request.get_json(silent=True) or {}
        if _wants_wait(data.get("wait"), request.args.get("wait")):
            controller.wait(timeout=WAIT_TIMEOUT_S)
        else:
            controller.poll()
        snap = controller.snapshot()
        if error is not None:
            return jsonify({"error": error, "state": snap}), status
        return jsonify(snap), status

    def bad_request(message: str):
        logger.warning("Bad request to %s: %s", request.path, message)
        return jsonify({"error": message}), 400

    @app.get("/api/state")
    def api_state():
        return respond()

    @app.post("/api/new")
    def api_new():
        data = request.get_json(silent=True) or {}
        try:
            mode = Mode((data.get("mode") or controller.mode.value).lower())
            state = state_from_dict(data["state"]) if data.get("state") else None
            default_first = state.turn.value if state is not None else "self"
            first = Player((data.get("first") or default_first).lower())
        except (ValueError, TypeError, AttributeError) as exc:
            return bad_request(str(exc))

        if mode is not controller.mode:
            controller.set_mode(mode)
        if state is not None:
            state.turn = first
        controller.start_game(first, state)
        return respond()

    @app.post("/api/select")
    def api_select():
        data = request.get_json(silent=True) or {}
        try:
            player = Player(data.get("player"))
            size = parse_size(data.get("size"))
        except ValueError as exc:
            return bad_request(str(exc))
        if not controller.select_pending_piece(player, size):
            return respond(400, "Selection rejected")
        return respond()

    @app.post("/api/move")
    def api_move():
        data = request.get_json(silent=True) or {}
        if data.get("cell") is None:
            return bad_request("Missing cell")
        try:
            selection = None
            if data.get("player") is not None and data.get("size") is not None:
                move = Move.from_dict(data)
                cell = move.cell
                selection = Selection(Player(data["player"]), move.size)
            else:
                cell = int(data["cell"])
        except (ValueError, TypeError) as exc:
            return bad_request(str(exc))

        if not controller.attempt_move(cell, selection):
            return respond(400, "Move rejected")
        return respond()

    @app.post("/api/suggest")
    def api_suggest():
        if controller.request_suggestion() is None:
            return respond(400, "Suggestion rejected")
        return respond()

    @app.post("/api/auto-suggest")
    def api_auto_suggest():
        data = request.get_json(silent=True) or {}
        if "enabled" not in data:
            return bad_request("Missing enabled")
        if not isinstance(data["enabled"], bool):
            return bad_request("enabled must be a boolean")
        controller.set_auto_suggest(data["enabled"])
        return respond()

    @app.post("/api/reset")
    def api_reset():
        controller.reset_game()
        return respond()

    return app


if __name__ == "__main__":
    env_settings = Settings.from_env()
    logging.basicConfig(
        level=env_settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    create_app(settings=env_settings).run(host="0.0.0.0", port=5000, debug=True)
