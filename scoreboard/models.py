from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    """ISO-8601 in UTC; naive values coming back from SQLite are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


class Team(db.Model):
    __tablename__ = 'teams'

    # Public identifier handed to the game client; also the primary key
    uid = db.Column(db.String(16), primary_key=True)
    team_number = db.Column(db.Integer, unique=True, nullable=False, index=True)
    team_name = db.Column(db.String(30), unique=True, nullable=False, index=True)
    player1 = db.Column(db.String(100), nullable=False)
    player2 = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    phone_number = db.Column(db.String(32), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'uid': self.uid,
            'teamNumber': self.team_number,
            'teamName': self.team_name,
            'player1': self.player1,
            'player2': self.player2,
            'email': self.email,
            'phoneNumber': self.phone_number,
            'score': self.score,
            'createdAt': isoformat(self.created_at),
        }

    def to_registration_dict(self):
        """Shape returned by the register endpoint."""
        return {
            'teamNumber': self.team_number,
            'teamName': self.team_name,
            'uid': self.uid,
            'player1': self.player1,
            'player2': self.player2,
            'email': self.email,
            'phoneNumber': self.phone_number,
            'score': self.score,
        }

    def __repr__(self):
        return f'<Team {self.uid} #{self.team_number} {self.team_name!r} score={self.score}>'
