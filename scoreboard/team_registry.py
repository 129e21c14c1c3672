import logging
from contextlib import contextmanager
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import BackendUnavailableError, ConflictError, NotFoundError, ValidationError
from .models import db, Team
from .otp import OtpStore
from .uid_generator import generate_uid
from .validation import validate_registration, validate_score_update
from shared.events import Event, team_registered_event, score_updated_event
from shared.pubsub import ChangeFeed

logger = logging.getLogger(__name__)


class TeamRegistry:
    """
    Registration and score workflows against the team store:
    - Register teams with unique name, email and uid
    - Look teams up by uid or name
    - Apply atomic score increments
    - Announce every change on the change feed
    """

    def __init__(
        self,
        change_feed: ChangeFeed = None,
        uid_generator: Callable[[], str] = generate_uid,
        max_attempts: int = 5,
        otp_store: OtpStore = None,
        require_email_verification: bool = False
    ):
        self.change_feed = change_feed
        self.uid_generator = uid_generator
        self.max_attempts = max_attempts
        self.otp_store = otp_store
        self.require_email_verification = require_email_verification

    @contextmanager
    def _store_access(self, action: str):
        """Convert unexpected store failures into BackendUnavailableError."""
        try:
            yield
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Store failure while {action}: {e}")
            raise BackendUnavailableError() from e

    def _publish(self, event: Event):
        if self.change_feed is None:
            return
        try:
            self.change_feed.publish(event)
        except Exception as e:
            logger.error(f"Failed to publish {event.type} for {event.team_uid}: {e}")

    # ==================== Lookups ====================

    def get_team(self, uid: str) -> Optional[Team]:
        """Get a team by its uid."""
        with self._store_access('loading team'):
            return db.session.get(Team, uid)

    def get_team_by_name(self, team_name: str) -> Optional[Team]:
        with self._store_access('loading team'):
            return Team.query.filter_by(team_name=team_name).first()

    def get_team_by_email(self, email: str) -> Optional[Team]:
        with self._store_access('loading team'):
            return Team.query.filter_by(email=email).first()

    def find_team(self, uid: str = None, team_name: str = None) -> Optional[Team]:
        """Look up by uid when given, otherwise by team name."""
        if uid:
            return self.get_team(uid)
        if team_name:
            return self.get_team_by_name(team_name)
        raise ValidationError('Please provide either uid or teamName parameter')

    def count_teams(self) -> int:
        with self._store_access('counting teams'):
            return Team.query.count()

    # ==================== Registration ====================

    def _check_unique(self, team_name: str, email: str):
        if self.get_team_by_name(team_name):
            raise ConflictError(
                'teamName', team_name,
                f'Team name "{team_name}" is already taken. Please choose a different name.'
            )
        if self.get_team_by_email(email):
            raise ConflictError(
                'email', email,
                'This email address is already registered. Please use a different email.'
            )

    def register_team(
        self,
        team_name: str,
        player1: str,
        player2: str,
        email: str,
        phone_number: str,
        otp: str = None
    ) -> Team:
        """
        Register a new team with score 0 and the next team number.

        Raises:
            ValidationError: malformed input or failed email verification
            ConflictError: team name or email already registered
            BackendUnavailableError: the store failed
        """
        fields = validate_registration({
            'teamName': team_name,
            'player1': player1,
            'player2': player2,
            'email': email,
            'phoneNumber': phone_number,
        })
        team_name = fields['teamName']
        email = fields['email']

        if self.require_email_verification:
            if self.otp_store is None or not self.otp_store.verify(email, otp):
                raise ValidationError('Invalid or expired verification code.')

        self._check_unique(team_name, email)

        for attempt in range(1, self.max_attempts + 1):
            uid = self.uid_generator()
            if self.get_team(uid) is not None:
                logger.warning(f"uid collision on {uid} (attempt {attempt}/{self.max_attempts})")
                continue

            team = Team(
                uid=uid,
                team_number=self.count_teams() + 1,
                team_name=team_name,
                player1=fields['player1'],
                player2=fields['player2'],
                email=email,
                phone_number=fields['phoneNumber'],
                score=0
            )

            with self._store_access('registering team'):
                db.session.add(team)
                try:
                    db.session.commit()
                except IntegrityError as e:
                    db.session.rollback()
                    logger.warning(
                        f"Unique constraint hit registering {team_name!r} "
                        f"(attempt {attempt}/{self.max_attempts}): {e.orig}"
                    )
                    # A concurrent registration may have taken the name or email
                    self._check_unique(team_name, email)
                    continue

            logger.info(f"Registered team #{team.team_number} {team.team_name!r} as {team.uid}")
            self._publish(team_registered_event(team.uid, team.team_number, team.team_name))
            return team

        raise RuntimeError("Could not allocate a unique team identifier")

    # ==================== Scores ====================

    def update_score(self, uid: str, increment: int) -> Team:
        """
        Add `increment` to a team's score in a single UPDATE statement.

        Raises:
            ValidationError: missing uid or bad increment
            NotFoundError: no team with that uid
        """
        uid, increment = validate_score_update({'uid': uid, 'scoreIncrement': increment})

        with self._store_access('updating score'):
            result = db.session.execute(
                update(Team)
                .where(Team.uid == uid)
                .values(score=Team.score + increment)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                db.session.rollback()
                raise NotFoundError('Team not found with the provided UID')
            db.session.commit()
            team = db.session.get(Team, uid)

        logger.info(f"Score for {uid} changed by {increment} to {team.score}")
        self._publish(score_updated_event(uid, increment, team.score))
        return team

    def update_score_by_team_name(self, team_name: str, increment: int) -> Team:
        """Same as update_score, locating the team by name first."""
        if not isinstance(team_name, str) or not team_name.strip():
            raise ValidationError('Missing required field: teamName')

        team = self.get_team_by_name(team_name.strip())
        if team is None:
            raise NotFoundError('Team not found with the provided team name')

        return self.update_score(team.uid, increment)
