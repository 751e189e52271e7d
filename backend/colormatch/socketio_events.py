from flask_socketio import join_room, leave_room, emit
from flask import request
from colormatch.api.rounds import discard_round
from typing import Dict, Any


# Socket context: which round a sid joined and whether it owns that round
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # The owning view going away tears the round down: stop its ticker
    # so nothing ticks against a discarded round
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx and ctx.get('is_owner'):
        discard_round(ctx['round_id'])


def handle_join_round(data):
    round_id = (data or {}).get('round_id')
    if not round_id:
        emit('error', {'message': 'round_id is required'})
        return
    room = f"round:{round_id}"
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'round_id': round_id, 'is_owner': bool((data or {}).get('is_owner'))}
    emit('joined', {'room': room})


def handle_leave_round(data):
    round_id = (data or {}).get('round_id')
    if not round_id:
        emit('error', {'message': 'round_id is required'})
        return
    room = f"round:{round_id}"
    leave_room(room)
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('round_id') == round_id:
        _sid_to_ctx.pop(_get_sid(), None)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from colormatch import socketio

    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_round', handle_join_round, namespace=namespace)
        socketio.on_event('leave_round', handle_leave_round, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
