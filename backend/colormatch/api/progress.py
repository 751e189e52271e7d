from flask import Blueprint, jsonify, request
from colormatch.services.game.difficulty import PROFILES
from colormatch.api.rounds import achievement_store, score_store


progress = Blueprint('progress', __name__)


@progress.route('/difficulties', methods=['GET'])
def list_difficulties():
    return jsonify([p.to_dict() for p in PROFILES.values()])


@progress.route('/scores', methods=['GET'])
def list_scores():
    """Score history, oldest first; optionally filtered by ?difficulty=."""
    difficulty = request.args.get('difficulty')
    store = score_store()
    if difficulty is None:
        entries = store.load()
    elif difficulty.lower() in PROFILES:
        entries = store.for_difficulty(difficulty.lower())
    else:
        return jsonify({'error': f"difficulty must be one of {sorted(PROFILES)}"}), 400
    return jsonify([e.to_dict() for e in entries])


@progress.route('/scores/<string:entry_id>', methods=['DELETE'])
def delete_score(entry_id):
    if not score_store().delete(entry_id):
        return jsonify({'error': 'Score entry not found'}), 404
    return jsonify({'deleted': 1})


@progress.route('/scores', methods=['DELETE'])
def clear_scores():
    return jsonify({'deleted': score_store().clear()})


@progress.route('/achievements', methods=['GET'])
def list_achievements():
    return jsonify([a.to_dict() for a in achievement_store().load()])


@progress.route('/achievements/reset', methods=['POST'])
def reset_achievements():
    """Relock the whole catalog (the player's "reset progress")."""
    store = achievement_store()
    store.reset()
    return jsonify([a.to_dict() for a in store.load()])
