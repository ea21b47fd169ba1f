import re
from typing import Optional

from email_validator import validate_email, EmailNotValidError


class ValidationUtils:
    """
    Validation helpers for customer details and client supplied prices

    Features:
    - Email validation and normalisation
    - Text sanitising
    - Integer-cent validation for client supplied prices
    """

    MAX_TEXT_LENGTH = 2000

    @classmethod
    def validate_email(cls, email: str, check_deliverability: bool = False) -> bool:
        try:
            validate_email(email, check_deliverability=check_deliverability)
            return True
        except EmailNotValidError:
            return False

    @classmethod
    def normalize_email(cls, email: str) -> str:
        """Normalize email address for consistent storage"""
        try:
            validated = validate_email(email, check_deliverability=False)
            return validated.normalized.lower()
        except EmailNotValidError:
            raise ValueError(f"Invalid email address: {email}")

    @classmethod
    def is_non_negative_cents(cls, value) -> bool:
        """True for non-negative integers (bools excluded)"""
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0

    @classmethod
    def sanitize_text(cls, text: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
        """
        Sanitize text input for safe storage

        - Strips whitespace
        - Removes control characters except newlines and tabs
        - Enforces length limits
        """
        if text is None:
            return None
        if not isinstance(text, str):
            text = str(text)

        sanitized = text.strip()
        sanitized = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', sanitized)

        limit = max_length or cls.MAX_TEXT_LENGTH
        return sanitized[:limit]
