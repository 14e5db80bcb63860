"""
Flask API for the arena arbiter.

Endpoints:
- POST /register            -> seat an agent (entry fee checked by the entry gate); starts the match at two
- POST /move                -> submit a move {match_id, agent_id, move, commentary?}
- GET  /events              -> Server-Sent Events stream (player_joined, match_started, move_request, round_result, match_over)
- GET  /health              -> table status, phase, seated players, fee and prize
- GET  /games               -> registered game types
- GET  /matches/<match_id>  -> public state of a live match
- GET  /stats[?agent_id=]   -> lifetime stats for one agent, or leaderboard + all agents

Requests are rate limited per client address (general, registration and move buckets).
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from flask import Flask, Response, jsonify, request

from arena402.arbiter import Arbiter
from arena402.config import SETTINGS
from arena402.entry_gate import OpenEntryGate, PaymentClaimGate
from arena402.errors import ConfigurationError, ValidationError
from arena402.games.registry import default_registry
from arena402.rate_limiter import RateLimiter
from arena402.validation import validate_move_request

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("server")


def build_arbiter(game_type: Optional[str] = None) -> Arbiter:
    gate = PaymentClaimGate() if SETTINGS.require_payment else OpenEntryGate()
    return Arbiter(default_registry(SETTINGS), game_type=game_type or SETTINGS.game_type, entry_gate=gate)


def _limited(limiter: RateLimiter, key: str):
    """429 response when key is over the limiter's budget, else None."""
    allowed, retry_after = limiter.check(key)
    if allowed:
        return None
    resp = jsonify({
        "error": "Too many requests",
        "retry_after": retry_after,
        "message": f"Rate limit exceeded. Try again in {retry_after} seconds.",
    })
    resp.status_code = 429
    resp.headers["Retry-After"] = str(retry_after)
    return resp


def create_app(arbiter: Arbiter, general_limiter: Optional[RateLimiter] = None,
               register_limiter: Optional[RateLimiter] = None,
               move_limiter: Optional[RateLimiter] = None) -> Flask:
    app = Flask(__name__)
    app.config["ARBITER"] = arbiter
    general_limiter = general_limiter or RateLimiter(100, 60)
    register_limiter = register_limiter or RateLimiter(5, 300)
    move_limiter = move_limiter or RateLimiter(30, 60)

    def client_key() -> str:
        return request.remote_addr or "unknown"

    @app.before_request
    def general_rate_limit():
        if request.method == "OPTIONS" or request.path == "/events":
            return None
        return _limited(general_limiter, client_key())

    @app.route("/register", methods=["POST"])
    def register():
        limited = _limited(register_limiter, client_key())
        if limited is not None:
            return limited
        body = request.get_json(silent=True)
        try:
            result = arbiter.register(body)
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        except ConfigurationError as e:
            log.exception("Cannot start match")
            return jsonify({"error": str(e)}), 500
        if not result.accepted:
            if result.payment_required:
                return jsonify({
                    "error": result.reason,
                    "payment": {"amount": arbiter.config.entry_fee, "currency": "SOL"},
                }), 402
            return jsonify({"error": result.reason}), 409
        payload = result.to_dict()
        payload.update({
            "game_type": arbiter.game_type,
            "entry_fee": arbiter.config.entry_fee,
            "prize": arbiter.prize,
        })
        return jsonify(payload)

    @app.route("/move", methods=["POST"])
    def move():
        limited = _limited(move_limiter, client_key())
        if limited is not None:
            return limited
        body = request.get_json(silent=True)
        try:
            req = validate_move_request(body)
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        result = arbiter.submit_move(req["match_id"], req["agent_id"], req["move"], req["commentary"],
                                     payment=(body or {}).get("payment"))
        if result.accepted:
            return jsonify(result.to_dict())
        status = 404 if result.reason == "Match not found" else 400
        return jsonify(result.to_dict()), status

    @app.route("/events", methods=["GET"])
    def events():
        sub = arbiter.bus.subscribe()
        resp = Response(sub.stream(), mimetype="text/event-stream")
        resp.headers["X-Accel-Buffering"] = "no"
        return resp

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify(arbiter.health())

    @app.route("/games", methods=["GET"])
    def games():
        return jsonify({
            "active": arbiter.game_type,
            "games": [c.to_dict() for c in arbiter.registry.all_configs()],
        })

    @app.route("/matches/<match_id>", methods=["GET"])
    def match_state(match_id: str):
        state = arbiter.match_state(match_id)
        if state is None:
            return jsonify({"error": "not found"}), 404
        return jsonify(state)

    @app.route("/stats", methods=["GET"])
    def stats():
        agent_id = request.args.get("agent_id")
        if agent_id:
            entry = arbiter.stats.get(agent_id)
            if entry is None:
                return jsonify({"error": "not found"}), 404
            return jsonify(entry)
        return jsonify({"leaderboard": arbiter.stats.leaderboard(), "agents": arbiter.stats.all()})

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization, X-Payment"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Cache-Control"] = "no-store, max-age=0"
        return response

    @app.route("/<path:path>", methods=["OPTIONS"])
    def cors_preflight(path: str):
        return app.make_response(("", 204))

    return app


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--game-type", default=None, help="Game to host (defaults to GAME_TYPE)")
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=SETTINGS.arbiter_port)
    ap.add_argument("--log-level", default="INFO", help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()

    logging.getLogger().setLevel(getattr(logging, args.log_level.upper(), logging.INFO))
    arbiter = build_arbiter(args.game_type)
    log.info("Hosting %s on port %d (entry fee %s, prize %s)", arbiter.game_type, args.port,
             arbiter.config.entry_fee, arbiter.prize)
    create_app(arbiter).run(host=args.host, port=args.port, threaded=True)
