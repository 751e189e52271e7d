from colormatch import db


class Setting(db.Model):
    """Namespaced key-value row; each persisted collection lives under one key."""
    __tablename__ = 'setting'
    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.Float, nullable=True)
