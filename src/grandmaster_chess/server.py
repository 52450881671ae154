"""
Minimal Flask API that wires the game controller into a browser UI.

Endpoints:
- POST /api/games                  -> start a new session, returns its state
- GET  /api/games/<id>             -> current state
- POST /api/games/<id>/select      -> click a square ({"square": "e2"})
- POST /api/games/<id>/move        -> play a move ({"move": "Nf3"} or {"from", "to", "promotion"})
- POST /api/games/<id>/undo        -> take back the last move
- POST /api/games/<id>/reset       -> new game in the same session
- POST /api/games/<id>/ai-move     -> ask the AI for a move (409 while one is in flight)
- GET  /api/games/<id>/pgn         -> PGN of the game so far

Sessions live in memory only and are dropped after an hour without activity.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import threading
import time
import uuid
from typing import Callable, Dict, Optional

from flask import Flask, jsonify, request

from .advisor import MoveAdvisor
from .config import SETTINGS
from .controller import GameController

log = logging.getLogger("server")

SESSION_TTL_S = 3600


def _session_payload(game_id: str, session: dict) -> dict:
    ctrl: GameController = session["controller"]
    data = ctrl.snapshot()
    data["game_id"] = game_id
    data["model"] = ctrl.advisor.model
    return data


def create_app(controller_factory: Optional[Callable[[], GameController]] = None) -> Flask:
    app = Flask(__name__)
    sessions: Dict[str, dict] = {}
    sessions_lock = threading.Lock()
    make_controller = controller_factory or (lambda: GameController(advisor=MoveAdvisor()))
    app.config["SESSIONS"] = sessions

    def _cleanup_stale_sessions(max_age_s: int = SESSION_TTL_S):
        now = time.time()
        with sessions_lock:
            expired = [gid for gid, sess in sessions.items() if now - sess.get("updated_at", now) > max_age_s]
            for gid in expired:
                sessions.pop(gid, None)
        if expired:
            log.info("Dropped %d idle sessions", len(expired))

    def _get_session(game_id: str) -> Optional[dict]:
        _cleanup_stale_sessions()
        with sessions_lock:
            session = sessions.get(game_id)
        if session:
            session["updated_at"] = time.time()
        return session

    def _not_found():
        return jsonify({"error": "not found"}), 404

    @app.route("/api/games", methods=["POST"])
    def create_game():
        _cleanup_stale_sessions()
        data = request.get_json(silent=True) or {}
        game_id = data.get("game_id") or f"game_{int(time.time())}_{uuid.uuid4().hex[:6]}"
        session = {
            "controller": make_controller(),
            "lock": threading.Lock(),
            "created_at": time.time(),
            "updated_at": time.time(),
        }
        with sessions_lock:
            sessions[game_id] = session
        log.info("Created session %s", game_id)
        return jsonify(_session_payload(game_id, session)), 201

    @app.route("/api/games/<game_id>", methods=["GET"])
    def game_state(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        return jsonify(_session_payload(game_id, session))

    @app.route("/api/games/<game_id>/select", methods=["POST"])
    def select_square(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        data = request.get_json(silent=True) or {}
        square = data.get("square")
        if not isinstance(square, str):
            return jsonify({"error": "square is required"}), 400
        if session["controller"].thinking:
            return jsonify({"error": "ai_thinking"}), 409
        with session["lock"]:
            moved = session["controller"].select_or_move(square)
            payload = _session_payload(game_id, session)
        payload["moved"] = moved
        return jsonify(payload)

    @app.route("/api/games/<game_id>/move", methods=["POST"])
    def play_move(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        data = request.get_json(silent=True) or {}
        if isinstance(data.get("move"), str):
            spec = data["move"]
        elif data.get("from") and data.get("to"):
            spec = {"from": data["from"], "to": data["to"], "promotion": data.get("promotion") or "q"}
        else:
            return jsonify({"error": "move or from/to is required"}), 400
        ctrl: GameController = session["controller"]
        if ctrl.thinking:
            return jsonify({"error": "ai_thinking"}), 409
        with session["lock"]:
            if not ctrl.apply_move(spec):
                return jsonify({"error": "illegal_move"}), 400
            return jsonify(_session_payload(game_id, session))

    @app.route("/api/games/<game_id>/undo", methods=["POST"])
    def undo_move(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        with session["lock"]:
            session["controller"].undo()
            return jsonify(_session_payload(game_id, session))

    @app.route("/api/games/<game_id>/reset", methods=["POST"])
    def reset_game(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        with session["lock"]:
            session["controller"].reset()
            return jsonify(_session_payload(game_id, session))

    @app.route("/api/games/<game_id>/ai-move", methods=["POST"])
    def ai_move(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        ctrl: GameController = session["controller"]
        if ctrl.thinking:
            return jsonify({"error": "ai_thinking"}), 409
        with session["lock"]:
            if ctrl.thinking:
                return jsonify({"error": "ai_thinking"}), 409
            if ctrl.is_game_over():
                return jsonify({"error": "game_over", **_session_payload(game_id, session)}), 409
            moved = asyncio.run(ctrl.trigger_ai_move())
            payload = _session_payload(game_id, session)
        payload["moved"] = moved
        return jsonify(payload)

    @app.route("/api/games/<game_id>/pgn", methods=["GET"])
    def game_pgn(game_id: str):
        session = _get_session(game_id)
        if not session:
            return _not_found()
        ctrl: GameController = session["controller"]
        pgn = ctrl.position.pgn(white="Human", black=ctrl.advisor.model)
        return app.response_class(pgn, mimetype="application/x-chess-pgn")

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        # Prevent caching so the UI always sees the freshest state
        response.headers["Cache-Control"] = "no-store, max-age=0"
        return response

    @app.route("/api/<path:path>", methods=["OPTIONS"])
    def cors_preflight(path: str):
        return app.make_response(("", 204))

    return app


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Grandmaster Chess API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, SETTINGS.log_level, logging.INFO),
                        format="%(asctime)s %(levelname)s %(message)s")
    create_app().run(host=args.host, port=args.port, debug=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
