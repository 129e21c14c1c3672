"""
Unit tests for validation module.
Tests: validate_registration, validate_score_update, validate_score_increment
"""
import pytest
from scoreboard.errors import ValidationError
from scoreboard.validation import (
    validate_registration,
    validate_score_update,
    validate_score_increment
)


@pytest.fixture
def payload():
    return {
        'teamName': '  Night Owls ',
        'player1': 'Ana',
        'player2': 'Ben',
        'email': 'owls@example.com',
        'phoneNumber': '+44 7700 900123',
    }


class TestValidateRegistration:
    """Tests for validate_registration."""

    def test_valid_payload_is_trimmed(self, payload):
        cleaned = validate_registration(payload)
        assert cleaned['teamName'] == 'Night Owls'
        assert cleaned['email'] == 'owls@example.com'

    @pytest.mark.parametrize('field', ['teamName', 'player1', 'player2', 'email', 'phoneNumber'])
    def test_missing_field(self, payload, field):
        del payload[field]
        with pytest.raises(ValidationError, match='Missing required fields'):
            validate_registration(payload)

    def test_blank_field(self, payload):
        payload['player2'] = '   '
        with pytest.raises(ValidationError, match='Missing required fields'):
            validate_registration(payload)

    def test_non_string_field(self, payload):
        payload['player1'] = 42
        with pytest.raises(ValidationError, match='All fields must be strings'):
            validate_registration(payload)

    def test_not_a_dict(self):
        with pytest.raises(ValidationError):
            validate_registration(['teamName'])

    @pytest.mark.parametrize('name', ['A', 'x' * 31])
    def test_team_name_length_bounds(self, payload, name):
        payload['teamName'] = name
        with pytest.raises(ValidationError, match='between 2 and 30'):
            validate_registration(payload)

    @pytest.mark.parametrize('name', ['AB', 'x' * 30])
    def test_team_name_length_edges_accepted(self, payload, name):
        payload['teamName'] = name
        assert validate_registration(payload)['teamName'] == name

    def test_player_name_too_long(self, payload):
        payload['player1'] = 'p' * 101
        with pytest.raises(ValidationError, match='player1'):
            validate_registration(payload)

    @pytest.mark.parametrize('email', ['owls', 'owls@example', 'ow ls@example.com', '@example.com'])
    def test_bad_email(self, payload, email):
        payload['email'] = email
        with pytest.raises(ValidationError, match='Invalid email format'):
            validate_registration(payload)

    @pytest.mark.parametrize('phone', ['5551234567', '+15551234567', '(555) 123-4567', '+1 (555) 123-4567'])
    def test_good_phone(self, payload, phone):
        payload['phoneNumber'] = phone
        assert validate_registration(payload)['phoneNumber'] == phone

    @pytest.mark.parametrize('phone', ['12345', '+1234567890123456', '555-CALL-NOW', '++15551234567'])
    def test_bad_phone(self, payload, phone):
        payload['phoneNumber'] = phone
        with pytest.raises(ValidationError, match='Invalid phone number format'):
            validate_registration(payload)


class TestValidateScoreUpdate:
    """Tests for validate_score_update."""

    def test_valid(self):
        assert validate_score_update({'uid': ' qK234 ', 'scoreIncrement': 100}) == ('qK234', 100)

    def test_negative_increment(self):
        assert validate_score_update({'uid': 'qK234', 'scoreIncrement': -30}) == ('qK234', -30)

    def test_missing_uid(self):
        with pytest.raises(ValidationError, match='Missing required field: uid'):
            validate_score_update({'scoreIncrement': 5})

    def test_missing_increment(self):
        with pytest.raises(ValidationError, match='Missing required field: scoreIncrement'):
            validate_score_update({'uid': 'qK234'})

    def test_zero_increment_is_present(self):
        assert validate_score_update({'uid': 'qK234', 'scoreIncrement': 0}) == ('qK234', 0)

    def test_uid_must_be_string(self):
        with pytest.raises(ValidationError, match='uid must be a string'):
            validate_score_update({'uid': 12345, 'scoreIncrement': 5})

    def test_increment_must_be_number(self):
        with pytest.raises(ValidationError, match='must be a number'):
            validate_score_update({'uid': 'qK234', 'scoreIncrement': '10'})


class TestValidateScoreIncrement:
    """Tests for validate_score_increment."""

    @pytest.mark.parametrize('value', [-1_000_000, 1_000_000, 0, 1])
    def test_bounds_inclusive(self, value):
        assert validate_score_increment(value) == value

    @pytest.mark.parametrize('value', [2_000_000, -1_000_001, 1_000_001])
    def test_out_of_range(self, value):
        with pytest.raises(ValidationError, match='between -1,000,000 and 1,000,000'):
            validate_score_increment(value)

    def test_integral_float_accepted(self):
        result = validate_score_increment(25.0)
        assert result == 25
        assert isinstance(result, int)

    @pytest.mark.parametrize('value', [2.5, float('nan'), float('inf')])
    def test_non_integral_float_rejected(self, value):
        with pytest.raises(ValidationError, match='must be a number'):
            validate_score_increment(value)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match='must be a number'):
            validate_score_increment(True)
