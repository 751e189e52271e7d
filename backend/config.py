import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///colormatch.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Round clock (seconds between ticks)
    ROUND_TICK_SEC = float(os.environ.get('ROUND_TICK_SEC', '1'))
    # Streak rules: every STREAK_STEP consecutive outcomes grant/cost time
    STREAK_STEP = int(os.environ.get('STREAK_STEP', '3'))
    STREAK_BONUS_SEC = int(os.environ.get('STREAK_BONUS_SEC', '5'))
    STREAK_PENALTY_SEC = int(os.environ.get('STREAK_PENALTY_SEC', '5'))
    # Cells recolored after each correct match
    RESHUFFLE_CELLS = int(os.environ.get('RESHUFFLE_CELLS', '3'))
    # Optional: heartbeat interval for ticker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Namespaced keys for the persisted collections
    SCORE_STORE_KEY = os.environ.get('SCORE_STORE_KEY', 'colormatch.scores')
    ACHIEVEMENT_STORE_KEY = os.environ.get('ACHIEVEMENT_STORE_KEY', 'colormatch.achievements')
