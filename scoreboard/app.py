import json
import logging
import os
import queue
from typing import Iterator

import redis
from flask import Flask, request, jsonify, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, MethodNotAllowed

from .config import config
from .errors import ScoreboardError, ValidationError, NotFoundError, ConflictError
from .leaderboard import Scoreboard
from .models import db, isoformat, utcnow
from .otp import create_otp_store, deliver_otp
from .team_registry import TeamRegistry
from .validation import EMAIL_RE, validate_score_update
from shared.pubsub import create_change_feed

logger = logging.getLogger(__name__)

SSE_KEEPALIVE_SECONDS = 30


def create_app(config_name: str = None) -> Flask:
    """Application factory for the scoreboard service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    logging.getLogger('scoreboard').setLevel(app.config['LOG_LEVEL'].upper())

    # Initialize extensions
    db.init_app(app)

    # Initialize services
    change_feed = create_change_feed(
        backend=app.config['CHANGE_FEED_BACKEND'],
        redis_url=app.config['REDIS_URL'],
        channel=app.config['SCOREBOARD_CHANNEL']
    )
    otp_store = create_otp_store(
        backend=app.config['OTP_BACKEND'],
        redis_url=app.config['REDIS_URL'],
        ttl_seconds=app.config['OTP_TTL_SECONDS']
    )
    registry = TeamRegistry(
        change_feed=change_feed,
        max_attempts=app.config['REGISTRATION_MAX_ATTEMPTS'],
        otp_store=otp_store,
        require_email_verification=app.config['REQUIRE_EMAIL_VERIFICATION']
    )

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.change_feed = change_feed
    app.otp_store = otp_store
    app.registry = registry
    app.scoreboard = Scoreboard(app, change_feed)

    register_error_handlers(app)
    register_api_routes(app)

    return app


def error_response(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


def stream_scoreboard(scoreboard: Scoreboard, keepalive: float = SSE_KEEPALIVE_SECONDS) -> Iterator[str]:
    """Server-sent events: one `data:` frame per scoreboard change."""
    updates = queue.Queue()
    subscription = scoreboard.subscribe(updates.put)
    try:
        yield ": connected\n\n"
        while True:
            try:
                teams = updates.get(timeout=keepalive)
            except queue.Empty:
                yield ": keepalive\n\n"
                continue
            payload = {'teams': teams, 'totalTeams': len(teams)}
            yield f"data: {json.dumps(payload)}\n\n"
    finally:
        subscription.cancel()


def register_error_handlers(app: Flask):

    @app.errorhandler(ScoreboardError)
    def handle_scoreboard_error(e: ScoreboardError):
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return error_response(e.message, e.status_code)

    @app.errorhandler(MethodNotAllowed)
    def handle_method_not_allowed(e: MethodNotAllowed):
        allowed = sorted(m for m in (e.valid_methods or []) if m not in ('HEAD', 'OPTIONS'))
        return error_response(f"Method not allowed. Use {' or '.join(allowed)}.", 405)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error_response(e.description, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return error_response('Internal server error', 500)


def register_api_routes(app: Flask):
    """Register API routes."""

    # ==================== Registration ====================

    @app.route('/api/register', methods=['POST'])
    def api_register():
        """Register a team and hand back its uid."""
        data = json_body()

        team = app.registry.register_team(
            team_name=data.get('teamName'),
            player1=data.get('player1'),
            player2=data.get('player2'),
            email=data.get('email'),
            phone_number=data.get('phoneNumber'),
            otp=data.get('otp')
        )

        return jsonify({
            'success': True,
            'data': team.to_registration_dict()
        }), 201

    @app.route('/api/otp/request', methods=['POST'])
    def api_request_otp():
        """Send an email verification code ahead of registration."""
        email = json_body().get('email')
        if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
            raise ValidationError('Invalid email format.')
        email = email.strip()

        if app.registry.get_team_by_email(email):
            raise ConflictError(
                'email', email,
                'This email address is already registered. Please use a different email.'
            )

        code = app.otp_store.issue(email)
        deliver_otp(email, code)

        return jsonify({
            'success': True,
            'message': f'Verification code sent to {email}. It expires in {app.otp_store.ttl_seconds // 60} minutes.'
        })

    # ==================== Scores ====================

    @app.route('/api/update-score', methods=['POST'])
    def api_update_score():
        """Apply a signed score increment to a team."""
        uid, increment = validate_score_update(json_body())

        app.registry.update_score(uid, increment)

        return jsonify({
            'success': True,
            'message': f'Score updated successfully. Added {increment} points to team {uid}.'
        })

    # ==================== Lookups ====================

    @app.route('/api/team', methods=['GET', 'POST'])
    def api_get_team():
        """Get a team by uid or team name (query string or JSON body)."""
        if request.method == 'GET':
            source = request.args
            missing = 'Please provide either uid or teamName parameter'
        else:
            source = json_body()
            missing = 'Please provide either uid or teamName in request body'

        uid = source.get('uid')
        team_name = source.get('teamName')

        if not uid and not team_name:
            raise ValidationError(missing)
        if (uid and not isinstance(uid, str)) or (team_name and not isinstance(team_name, str)):
            raise ValidationError('uid and teamName must be strings')

        team = app.registry.find_team(uid=uid, team_name=team_name)
        if not team:
            raise NotFoundError('Team not found')

        return jsonify({'success': True, 'data': team.to_dict()})

    @app.route('/api/scoreboard', methods=['GET'])
    def api_scoreboard():
        """All teams, best score first."""
        teams = app.scoreboard.list()

        return jsonify({
            'success': True,
            'data': {
                'teams': teams,
                'totalTeams': len(teams),
                'lastUpdated': isoformat(utcnow())
            }
        })

    # ==================== Real-time Events (SSE) ====================

    @app.route('/api/scoreboard/stream', methods=['GET'])
    def api_scoreboard_stream():
        """SSE endpoint pushing the full scoreboard on every change."""
        return Response(stream_scoreboard(app.scoreboard), mimetype='text/event-stream', headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no'
        })

    # ==================== Health Check ====================

    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(text('SELECT 1'))
            db_ok = True
        except SQLAlchemyError:
            db_ok = False

        try:
            feed_ok = app.change_feed.ping()
        except (redis.RedisError, OSError):
            feed_ok = False

        status = 'healthy' if (db_ok and feed_ok) else 'unhealthy'
        code = 200 if status == 'healthy' else 503

        return jsonify({
            'status': status,
            'database': 'connected' if db_ok else 'disconnected',
            'changeFeed': 'connected' if feed_ok else 'disconnected'
        }), code
