from enum import Enum
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
import json


class EventType(str, Enum):
    TEAM_REGISTERED = "team.registered"
    SCORE_UPDATED = "team.score_updated"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Event:
    """A change to a team record, as carried on the change feed."""
    type: EventType
    team_uid: str
    timestamp: str = field(default_factory=_utc_timestamp)
    data: dict = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps({**asdict(self), "type": EventType(self.type).value})

    @classmethod
    def from_json(cls, raw: str) -> "Event":
        """
        Parse a feed message. Raises ValueError for anything that is not an
        object with a known `type` and a `team_uid`.
        """
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError(f"change event must be a JSON object, got {type(payload).__name__}")
        return cls(
            type=EventType(payload["type"]),
            team_uid=payload["team_uid"],
            timestamp=payload.get("timestamp") or _utc_timestamp(),
            data=payload.get("data") or {}
        )


def team_registered_event(uid: str, team_number: int, team_name: str) -> Event:
    return Event(
        type=EventType.TEAM_REGISTERED,
        team_uid=uid,
        data={
            "team_number": team_number,
            "team_name": team_name
        }
    )


def score_updated_event(uid: str, increment: int, score: int) -> Event:
    return Event(
        type=EventType.SCORE_UPDATED,
        team_uid=uid,
        data={
            "increment": increment,
            "score": score
        }
    )
