"""Tests for ValidationService."""

import pytest

from src.invitations.validation import ValidationService

validation = ValidationService()


@pytest.mark.parametrize(
    "phone, valid",
    [
        ("+34 600 123 456", True),
        ("(600) 123-456", True),
        ("600123456", True),
        ("0600123456", False),
        ("+34 600 abc", False),
        ("", False),
        (None, False),
    ],
)
def test_validate_phone(phone, valid):
    """Test strict phone validation."""
    assert validation.validate_phone(phone) is valid


def test_validate_phone_loose():
    """Test loose phone validation."""
    assert validation.validate_phone_loose("+34 (600) 12-34")
    assert not validation.validate_phone_loose("12345")
    assert not validation.validate_phone_loose("600 123 456 ext 2")


@pytest.mark.parametrize(
    "code, valid",
    [("abcd", True), ("a1b2c3d4", True), ("abc", False), ("abc-1234", False), ("x" * 21, False)],
)
def test_validate_invitation_code(code, valid):
    """Test invitation code validation."""
    assert validation.validate_invitation_code(code) is valid


@pytest.mark.parametrize(
    "name, valid",
    [
        ("Ana López", True),
        ("María-José O'Neill", True),
        ("Núñez", True),
        ("A", False),
        ("Ana <b>", False),
        ("R2D2", False),
    ],
)
def test_validate_name(name, valid):
    """Test guest name validation."""
    assert validation.validate_name(name) is valid


def test_sanitize_string_strips_markup_and_handlers():
    """Test that sanitising strips markup and event handlers."""
    assert validation.sanitize_string("  <script>alert(1)</script> hola ") == "alert(1) hola"
    assert validation.sanitize_string('<img onerror="x">') == 'img "x"'
    assert validation.sanitize_string("JavaScript:void(0)") == "void(0)"
    assert validation.sanitize_string(None) == ""


def test_sanitize_string_caps_length():
    """Test that sanitising caps the string length."""
    assert len(validation.sanitize_string("a" * 1500)) == 1000


def test_sanitize_phone():
    """Test phone sanitising."""
    assert validation.sanitize_phone(" +34 (600) 12-34x ") == "+34 (600) 12-34"
    assert validation.sanitize_phone("1" * 30) == "1" * 20
    assert validation.sanitize_phone(None) == ""
