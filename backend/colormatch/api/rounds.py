from flask import Blueprint, jsonify, request, current_app
from colormatch import socketio
from colormatch.services.game.difficulty import PROFILES
from colormatch.services.game.engine import Rules
from colormatch.services.game.scheduler import start_round_ticker
from colormatch.services.game.session import RoundSession
from colormatch.services.game.stores import (
    ACHIEVEMENT_STORE_KEY, SCORE_STORE_KEY,
    AchievementStore, ScoreStore, SqlKeyValueStore,
)
from typing import Dict, Optional


rounds = Blueprint('rounds', __name__)

# Sessions keyed by round id (runtime-only). Holds the current round,
# which stays readable after it ends until the next one starts.
_active_rounds: Dict[str, RoundSession] = {}


def score_store() -> ScoreStore:
    return ScoreStore(SqlKeyValueStore(), key=current_app.config.get('SCORE_STORE_KEY', SCORE_STORE_KEY))


def achievement_store() -> AchievementStore:
    return AchievementStore(SqlKeyValueStore(), key=current_app.config.get('ACHIEVEMENT_STORE_KEY', ACHIEVEMENT_STORE_KEY))


def _emit(name: str, payload: dict) -> None:
    socketio.emit(name, payload, to=f"round:{payload['round_id']}", namespace='/ws')


def _end_previous_rounds() -> None:
    # One round is live at a time; whatever is still running gets exited
    # (its score is kept) and ended rounds are dropped from the registry
    for previous in list(_active_rounds.values()):
        if previous.is_live:
            current_app.logger.info(f"[round-replaced] round={previous.id}")
            previous.exit()
        discard_round(previous.id)


def _new_session(difficulty: str) -> RoundSession:
    _end_previous_rounds()
    session = RoundSession(
        difficulty,
        scores=score_store(),
        achievements=achievement_store(),
        rules=Rules.from_config(current_app.config),
        listener=_emit,
        logger=current_app.logger,
    )
    _active_rounds[session.id] = session
    current_app.logger.info(f"[round-start] round={session.id} difficulty={session.difficulty}")
    start_round_ticker(current_app._get_current_object(), session)
    return session


def discard_round(round_id: str) -> Optional[RoundSession]:
    """Drop a session from the registry and stop its ticker."""
    session = _active_rounds.pop(round_id, None)
    if session is not None:
        session.cancel()
    return session


@rounds.route('/start', methods=['POST'])
def start_round():
    data = request.get_json(silent=True) or {}
    difficulty = (data.get('difficulty') or '').lower()
    if difficulty not in PROFILES:
        return jsonify({'error': f"difficulty must be one of {sorted(PROFILES)}"}), 400
    session = _new_session(difficulty)
    return jsonify(session.to_dict()), 201


@rounds.route('/<string:round_id>', methods=['GET'])
def get_round(round_id):
    session = _active_rounds.get(round_id)
    if not session:
        return jsonify({'error': 'Round not found'}), 404
    return jsonify(session.to_dict())


@rounds.route('/<string:round_id>/tap', methods=['POST'])
def tap(round_id):
    session = _active_rounds.get(round_id)
    if not session:
        return jsonify({'error': 'Round not found'}), 404
    data = request.get_json(silent=True) or {}
    index = data.get('index')
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(session.round.grid):
        return jsonify({'error': f"index must be an integer in [0, {len(session.round.grid)})"}), 400
    events = session.tap(index)
    payload = session.to_dict()
    payload['events'] = [e.to_dict() for e in events]
    return jsonify(payload)


@rounds.route('/<string:round_id>/exit', methods=['POST'])
def exit_round(round_id):
    session = _active_rounds.get(round_id)
    if not session:
        return jsonify({'error': 'Round not found'}), 404
    events = session.exit()
    discard_round(round_id)
    payload = session.to_dict()
    payload['events'] = [e.to_dict() for e in events]
    return jsonify(payload)


@rounds.route('/<string:round_id>/retry', methods=['POST'])
def retry_round(round_id):
    session = _active_rounds.get(round_id)
    if not session:
        return jsonify({'error': 'Round not found'}), 404
    # An unfinished round is exited first so its score is kept
    session.exit()
    discard_round(round_id)
    replacement = _new_session(session.difficulty)
    socketio.emit('round_replaced', {'from': round_id, 'to': replacement.id}, to=f"round:{round_id}", namespace='/ws')
    return jsonify(replacement.to_dict()), 201
