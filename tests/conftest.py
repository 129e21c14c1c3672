"""
Pytest configuration and fixtures for scoreboard service tests.
"""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from scoreboard.app import create_app
from scoreboard.models import db, Team


@pytest.fixture(scope='function')
def app():
    """Create a fresh application (and in-memory database) per test."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Database session with every table emptied."""
    with app.app_context():
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def registry(app):
    """The application's TeamRegistry."""
    return app.registry


@pytest.fixture
def team_payload():
    """A valid registration payload."""
    return {
        'teamName': 'Night Owls',
        'player1': 'Ana Diaz',
        'player2': 'Ben Carter',
        'email': 'owls@example.com',
        'phoneNumber': '+44 7700 900123',
    }


@pytest.fixture
def sample_teams(app, db_session):
    """
    Three teams inserted directly:
    uid AAAAA #1 score 50, uid BBBBB #2 score 50, uid CCCCC #3 score 10.
    """
    with app.app_context():
        teams = []
        for uid, number, score in [('BBBBB', 2, 50), ('AAAAA', 1, 50), ('CCCCC', 3, 10)]:
            team = Team(
                uid=uid,
                team_number=number,
                team_name=f'Team {number}',
                player1=f'Player {number}a',
                player2=f'Player {number}b',
                email=f'team{number}@example.com',
                phone_number=f'+1 555 000 000{number}',
                score=score
            )
            db.session.add(team)
            teams.append(team)

        db.session.commit()

        for team in teams:
            db.session.refresh(team)

        return sorted(teams, key=lambda t: t.team_number)
