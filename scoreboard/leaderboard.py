import logging
import threading
from typing import Callable, List, Optional

from flask import Flask, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from .errors import BackendUnavailableError
from .models import db, Team
from shared.events import Event
from shared.pubsub import ChangeFeed, FeedListener

logger = logging.getLogger(__name__)

ScoreboardCallback = Callable[[List[dict]], None]


class ScoreboardSubscription:
    """
    Live scoreboard subscription.
    Delivery and cancel() share a re-entrant lock, so once cancel() returns
    the callback is never invoked again. cancel() may be called from inside
    the callback and any number of times.

    The list is fetched while the lock is held, so deliveries reach the
    callback in the order their snapshots were taken.
    """

    def __init__(self, callback: ScoreboardCallback):
        self._callback = callback
        self._lock = threading.RLock()
        self._active = True
        self._listener: Optional[FeedListener] = None

    @property
    def active(self) -> bool:
        return self._active

    def _attach(self, listener: FeedListener):
        with self._lock:
            self._listener = listener
            if self._active:
                return
        listener.close()

    def deliver(self, fetch: Callable[[], List[dict]]):
        """Take a fresh snapshot with `fetch` and hand it to the callback."""
        with self._lock:
            if not self._active:
                return
            teams = fetch()
            try:
                self._callback(teams)
            except Exception:
                logger.exception("Scoreboard subscriber callback failed")

    def cancel(self):
        with self._lock:
            if not self._active:
                return
            self._active = False
            listener = self._listener
        if listener is not None:
            listener.close()
        logger.debug("Scoreboard subscription cancelled")


class Scoreboard:
    """
    Sorted view of all teams (score descending, team number ascending)
    with push delivery of the full list on every change.
    """

    def __init__(self, app: Flask, change_feed: ChangeFeed):
        self.app = app
        self.change_feed = change_feed

    def _query(self) -> List[dict]:
        try:
            teams = Team.query.order_by(Team.score.desc(), Team.team_number.asc()).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Store failure while listing teams: {e}")
            raise BackendUnavailableError() from e
        return [t.to_dict() for t in teams]

    def list(self) -> List[dict]:
        if has_app_context():
            return self._query()
        with self.app.app_context():
            return self._query()

    def subscribe(self, on_change: ScoreboardCallback, emit_initial: bool = True) -> ScoreboardSubscription:
        """
        Call `on_change` with the re-sorted team list after every change.
        With `emit_initial` the current list is delivered right away.
        """
        subscription = ScoreboardSubscription(on_change)

        def on_event(event: Event):
            if not subscription.active:
                return
            subscription.deliver(self.list)

        subscription._attach(self.change_feed.listen(on_event))

        if emit_initial:
            subscription.deliver(self.list)

        return subscription
