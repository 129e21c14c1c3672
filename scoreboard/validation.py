import math
import re
from typing import Tuple

from .errors import ValidationError

REGISTRATION_FIELDS = ('teamName', 'player1', 'player2', 'email', 'phoneNumber')

TEAM_NAME_MIN_LENGTH = 2
TEAM_NAME_MAX_LENGTH = 30
PLAYER_NAME_MAX_LENGTH = 100

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15

MAX_SCORE_INCREMENT = 1_000_000

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^\+?[\d\s\-()]+$')


def validate_registration(data: dict) -> dict:
    """
    Validate a registration payload.

    Returns:
        dict of trimmed field values keyed by their JSON names

    Raises:
        ValidationError: on missing, mistyped or malformed fields
    """
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')

    values = [data.get(field) for field in REGISTRATION_FIELDS]
    if any(v is None or (isinstance(v, str) and not v.strip()) for v in values):
        raise ValidationError(
            'Missing required fields. Please provide teamName, player1, player2, email, and phoneNumber.'
        )

    if not all(isinstance(v, str) for v in values):
        raise ValidationError('Invalid field types. All fields must be strings.')

    cleaned = {field: data[field].strip() for field in REGISTRATION_FIELDS}

    if not TEAM_NAME_MIN_LENGTH <= len(cleaned['teamName']) <= TEAM_NAME_MAX_LENGTH:
        raise ValidationError(
            f'Team name must be between {TEAM_NAME_MIN_LENGTH} and {TEAM_NAME_MAX_LENGTH} characters.'
        )

    for field in ('player1', 'player2'):
        if len(cleaned[field]) > PLAYER_NAME_MAX_LENGTH:
            raise ValidationError(
                f'{field} must be at most {PLAYER_NAME_MAX_LENGTH} characters.'
            )

    if not EMAIL_RE.match(cleaned['email']):
        raise ValidationError('Invalid email format.')

    phone = cleaned['phoneNumber']
    digits = sum(ch.isdigit() for ch in phone)
    if not PHONE_RE.match(phone) or not PHONE_MIN_DIGITS <= digits <= PHONE_MAX_DIGITS:
        raise ValidationError('Invalid phone number format.')

    return cleaned


def validate_score_increment(increment) -> int:
    # bool is an int subclass but never a score
    if isinstance(increment, bool) or not isinstance(increment, (int, float)):
        raise ValidationError('Invalid field type: scoreIncrement must be a number')

    if isinstance(increment, float):
        if math.isnan(increment) or math.isinf(increment) or not increment.is_integer():
            raise ValidationError('Invalid field type: scoreIncrement must be a number')
        increment = int(increment)

    if not -MAX_SCORE_INCREMENT <= increment <= MAX_SCORE_INCREMENT:
        raise ValidationError('Score increment must be between -1,000,000 and 1,000,000')

    return increment


def validate_score_update(data: dict) -> Tuple[str, int]:
    """Validate an update-score payload and return (uid, increment)."""
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')

    uid = data.get('uid')
    increment = data.get('scoreIncrement')

    if uid is None or uid == '':
        raise ValidationError('Missing required field: uid')

    if increment is None:
        raise ValidationError('Missing required field: scoreIncrement')

    if not isinstance(uid, str):
        raise ValidationError('Invalid field type: uid must be a string')

    uid = uid.strip()
    if not uid:
        raise ValidationError('Missing required field: uid')

    return uid, validate_score_increment(increment)
