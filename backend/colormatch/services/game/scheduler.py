from typing import Set

from colormatch import socketio
from .session import RoundSession


_ticking_rounds: Set[str] = set()


def start_round_ticker(app, session: RoundSession) -> None:
    """Drive the once-per-interval tick for a live round.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set, in
      which case the loop runs inline
    - Ensures a single ticker per round id
    - Stops as soon as the round ends or the session is cancelled
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    if session.id in _ticking_rounds:
        app.logger.info(f"[ticker-skip] round={session.id} already ticking")
        return
    _ticking_rounds.add(session.id)

    interval = float(app.config.get('ROUND_TICK_SEC', 1))
    heartbeat = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
    app.logger.info(
        f"[ticker-set] round={session.id} difficulty={session.difficulty} "
        f"interval={interval}s remaining={session.round.time_remaining}s"
    )

    def _worker(s: RoundSession):
        since_heartbeat = 0.0
        try:
            while s.is_live:
                socketio.sleep(interval)
                if not s.is_live:
                    break
                with app.app_context():
                    s.tick()
                since_heartbeat += interval
                if heartbeat > 0 and since_heartbeat >= heartbeat:
                    since_heartbeat = 0.0
                    app.logger.info(f"[ticker-heartbeat] round={s.id} remaining={s.round.time_remaining}s")
        finally:
            _ticking_rounds.discard(s.id)
        app.logger.info(f"[ticker-stop] round={s.id} status={s.round.status} cancelled={s.cancelled}")

    if app.config.get('TESTING'):
        _worker(session)
    else:
        socketio.start_background_task(_worker, session)
