"""
Unit tests for uid_generator module.
Tests: generate_uid, generate_otp
"""
import pytest
import re
from scoreboard.uid_generator import (
    generate_uid,
    generate_otp,
    UID_ALPHABET,
    UID_LENGTH
)


class TestGenerateUid:
    """Tests for generate_uid function."""

    def test_returns_string(self):
        """Should return a string."""
        for _ in range(50):
            assert isinstance(generate_uid(), str)

    def test_default_length(self):
        """Default uid should be 5 characters."""
        for _ in range(100):
            assert len(generate_uid()) == UID_LENGTH == 5

    def test_custom_length(self):
        """Length argument should be honoured."""
        assert len(generate_uid(8)) == 8
        assert len(generate_uid(1)) == 1

    def test_alphanumeric_only(self):
        """uid should only contain A-Z, a-z and 0-9."""
        pattern = re.compile(r'^[A-Za-z0-9]{5}$')
        for _ in range(200):
            assert pattern.match(generate_uid())

    def test_alphabet_has_62_symbols(self):
        """Alphabet should be exactly the 62 alphanumerics."""
        assert len(UID_ALPHABET) == 62
        assert len(set(UID_ALPHABET)) == 62

    def test_uses_whole_alphabet(self):
        """Over many draws every class of character should appear."""
        chars = set(''.join(generate_uid() for _ in range(500)))
        assert any(c.isupper() for c in chars)
        assert any(c.islower() for c in chars)
        assert any(c.isdigit() for c in chars)

    def test_mostly_unique(self):
        """Random uids should rarely collide."""
        uids = {generate_uid() for _ in range(1000)}
        assert len(uids) > 990


class TestGenerateOtp:
    """Tests for generate_otp function."""

    def test_six_digits(self):
        """Code should be six digits without a leading zero."""
        for _ in range(200):
            code = generate_otp()
            assert re.match(r'^[1-9]\d{5}$', code)

    def test_in_range(self):
        for _ in range(200):
            assert 100000 <= int(generate_otp()) <= 999999
