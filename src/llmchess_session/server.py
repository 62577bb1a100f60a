"""
Minimal Flask API for human vs AI sessions.

Endpoints:
- POST /api/human-games                       -> start a session (AI opens if the human plays black;
                                                 409 if human_game_id is already taken)
- GET  /api/human-games/<id>                  -> current state (fen, history, status, material, thinking)
- GET  /api/human-games/<id>/legal-moves      -> legal targets for ?square=e2
- POST /api/human-games/<id>/move             -> submit a human move; the AI reply runs in the background
- POST /api/human-games/<id>/reset            -> discard the session and start over
- GET  /api/human-games/<id>/history          -> structured history with PGN

Every session mutation runs on one background asyncio loop; HTTP threads only read snapshots.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import random
import threading
import time
import uuid
from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify, request

from .game import GameConfig, SessionController
from .models import Move, PieceKind
from .prompting import PromptConfig

log = logging.getLogger("server")

app = Flask(__name__)
human_lock = threading.Lock()

HUMAN_GAMES: Dict[str, dict] = {}
HUMAN_GAME_TTL_S = 3600  # drop inactive human games after an hour to avoid leaks

_loop: Optional[asyncio.AbstractEventLoop] = None
_loop_lock = threading.Lock()


def _event_loop() -> asyncio.AbstractEventLoop:
    """Start (once) and return the background loop that owns every controller."""
    global _loop
    with _loop_lock:
        if _loop is None:
            _loop = asyncio.new_event_loop()
            threading.Thread(target=_loop.run_forever, name="session-loop", daemon=True).start()
        return _loop


def _on_loop(fn: Callable[..., Any], *args) -> Any:
    """Run fn(*args) on the session loop and wait for its result."""
    async def _call():
        return fn(*args)
    return asyncio.run_coroutine_threadsafe(_call(), _event_loop()).result()


def _cleanup_stale_human_games(max_age_s: int = HUMAN_GAME_TTL_S):
    now = time.time()
    with human_lock:
        expired = [gid for gid, sess in HUMAN_GAMES.items() if now - sess.get("updated_at", now) > max_age_s]
        for gid in expired:
            sess = HUMAN_GAMES.pop(gid)
            _event_loop().call_soon_threadsafe(sess["driver"].cancel)


def _get_session(game_id: str) -> Optional[dict]:
    _cleanup_stale_human_games()
    with human_lock:
        return HUMAN_GAMES.get(game_id)


def _serialize(session: dict) -> dict:
    ctl: SessionController = session["controller"]
    snap = ctl.session
    return {
        "human_game_id": session["id"],
        "generation": snap.generation,
        "state": ctl.state.value,
        "current_fen": snap.fen,
        "side_to_move": snap.turn,
        "human_side": snap.human_color,
        "ai_side": snap.ai_color,
        "history": snap.sans,
        "status": snap.status().to_dict(),
        "material": snap.material.to_dict(),
        "invalid_move_count": snap.invalid_move_count,
        "max_invalid_moves": ctl.cfg.max_invalid_moves,
        "max_game_moves": ctl.cfg.max_game_moves,
        "thinking": ctl.thinking,
        "opponent": ctl.opponent_label(),
    }


def _move_from_payload(raw: Any) -> Move | str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        try:
            promo = raw.get("promotion")
            return Move(str(raw.get("from", "")).lower(), str(raw.get("to", "")).lower(),
                        PieceKind.parse(promo) if promo else None)
        except ValueError:
            return None
    return None


@app.route("/api/human-games", methods=["POST"])
def create_human_game():
    _cleanup_stale_human_games()
    data = request.get_json(force=True, silent=True) or {}
    opponent = str(data.get("opponent") or GameConfig.opponent).lower()
    if opponent not in ("llm", "random"):
        return jsonify({"error": "opponent must be 'llm' or 'random'"}), 400
    human_side = "black" if str(data.get("human_plays", "white")).lower() == "black" else "white"
    prompt = data.get("prompt") or {}
    try:
        cfg = GameConfig(
            max_game_moves=int(data.get("max_game_moves") or GameConfig.max_game_moves),
            max_invalid_moves=int(data.get("max_invalid_moves") or GameConfig.max_invalid_moves),
            opponent=opponent,
            human_color=human_side,
            model=data.get("model") or GameConfig.model,
            seed=data.get("seed"),
            prompt_cfg=PromptConfig(
                system_instructions=prompt.get("system_instructions") or PromptConfig.system_instructions,
                template=prompt.get("template") or PromptConfig.template,
            ),
        )
    except (TypeError, ValueError) as exc:
        return jsonify({"error": f"bad config: {exc}"}), 400

    game_id = data.get("human_game_id") or f"human_{int(time.time())}_{uuid.uuid4().hex[:6]}"
    with human_lock:
        if game_id in HUMAN_GAMES:
            return jsonify({"error": f"human game {game_id} already exists"}), 409

    def _start():
        ctl = SessionController(cfg, rng=random.Random(cfg.seed))
        driver = asyncio.get_running_loop().create_task(ctl.drive())
        return ctl, driver

    controller, driver = _on_loop(_start)
    session = {
        "id": game_id,
        "controller": controller,
        "driver": driver,
        "created_at": time.time(),
        "updated_at": time.time(),
    }
    with human_lock:
        duplicate = game_id in HUMAN_GAMES
        if not duplicate:
            HUMAN_GAMES[game_id] = session
    if duplicate:
        # lost a race with a concurrent create for the same id
        _event_loop().call_soon_threadsafe(driver.cancel)
        return jsonify({"error": f"human game {game_id} already exists"}), 409
    log.info("Started human game %s (opponent=%s, human=%s)", game_id, opponent, human_side)
    return jsonify(_serialize(session))


@app.route("/api/human-games/<game_id>", methods=["GET"])
def human_game_state(game_id: str):
    session = _get_session(game_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    return jsonify(_serialize(session))


@app.route("/api/human-games/<game_id>/legal-moves", methods=["GET"])
def human_game_legal_moves(game_id: str):
    session = _get_session(game_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    square = (request.args.get("square") or "").lower()
    ctl: SessionController = session["controller"]
    targets = ctl.legal_targets(square)
    return jsonify({"square": square, "moves": [{"to": t.to, "flags": t.flags} for t in targets]})


@app.route("/api/human-games/<game_id>/move", methods=["POST"])
def human_game_move(game_id: str):
    session = _get_session(game_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    data = request.get_json(force=True, silent=True) or {}
    move = _move_from_payload(data.get("human_move"))
    if move is None:
        return jsonify({"error": "human_move is required"}), 400

    ctl: SessionController = session["controller"]
    outcome = _on_loop(ctl.attempt_human_move, move)
    session["updated_at"] = time.time()
    if not outcome.accepted:
        return jsonify({"error": outcome.reason, **_serialize(session)}), 400
    payload = _serialize(session)
    payload["human_move"] = {"uci": outcome.uci, "san": outcome.san}
    return jsonify(payload)


@app.route("/api/human-games/<game_id>/reset", methods=["POST"])
def human_game_reset(game_id: str):
    session = _get_session(game_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    ctl: SessionController = session["controller"]
    _on_loop(ctl.reset)
    session["updated_at"] = time.time()
    return jsonify(_serialize(session))


@app.route("/api/human-games/<game_id>/history", methods=["GET"])
def human_game_history(game_id: str):
    session = _get_session(game_id)
    if not session:
        return jsonify({"error": "not found"}), 404
    ctl: SessionController = session["controller"]
    data = ctl.export_structured_history()
    data["pgn"] = ctl.pgn()
    return jsonify(data)


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    # Prevent caching so the UI always sees the freshest state
    response.headers["Cache-Control"] = "no-store, max-age=0"
    return response


@app.route("/api/<path:path>", methods=["OPTIONS"])
def cors_preflight(path: str):
    resp = app.make_response(("", 204))
    resp.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    resp.headers["Access-Control-Allow-Credentials"] = "true"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return resp


def main():
    ap = argparse.ArgumentParser(description="Serve the human vs AI session API.")
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--log-level", default="INFO", help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(host=args.host, port=args.port, threaded=True)


if __name__ == "__main__":
    main()
