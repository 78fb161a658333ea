"""Format checks and sanitisers for user supplied text.

These are cosmetic rules, not domain invariants: use cases call them before
building entities.
"""

import re

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_LOOSE_PATTERN = re.compile(r"^[+\-\s()0-9]{7,20}$")
CODE_PATTERN = re.compile(r"^[a-zA-Z0-9]{4,20}$")
NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿñÑ\s\-.']+$")

DANGEROUS_FRAGMENTS = re.compile(
    r"<script|</script|javascript:|on\w+\s*=|<iframe|<object|<embed",
    re.IGNORECASE,
)

MAX_STRING_LENGTH = 1000
MAX_PHONE_LENGTH = 20


class ValidationService:
    def validate_phone(self, phone: str | None) -> bool:
        if not phone or not isinstance(phone, str):
            return False
        return bool(PHONE_PATTERN.match(re.sub(r"[\s\-()]", "", phone)))

    def validate_phone_loose(self, phone: str | None) -> bool:
        if not phone or not isinstance(phone, str):
            return False
        return bool(PHONE_LOOSE_PATTERN.match(phone.strip()))

    def validate_invitation_code(self, code: str | None) -> bool:
        if not code or not isinstance(code, str):
            return False
        return bool(CODE_PATTERN.match(code.strip()))

    def validate_name(self, name: str | None) -> bool:
        if not name or not isinstance(name, str):
            return False
        name = name.strip()
        return 2 <= len(name) <= 100 and bool(NAME_PATTERN.match(name))

    def sanitize_string(self, value: str | None) -> str:
        if not value or not isinstance(value, str):
            return ""
        value = DANGEROUS_FRAGMENTS.sub("", value.strip())
        value = re.sub(r"[<>]", "", value)
        return value[:MAX_STRING_LENGTH]

    def sanitize_phone(self, phone: str | None) -> str:
        if not phone or not isinstance(phone, str):
            return ""
        return re.sub(r"[^\d+\-()\s]", "", phone.strip())[:MAX_PHONE_LENGTH]


validation_service = ValidationService()
