"""
Input validation utilities for data read from the datastore.
"""

import re
from typing import Optional


def validate_email(email: Optional[str]) -> bool:
    """
    Validate email address format.

    Args:
        email: Email address string

    Returns:
        True if valid format, False otherwise
    """
    if not email or not isinstance(email, str):
        return False

    # Basic email regex (RFC 5322 simplified)
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email.strip()))


def is_placeholder(value: Optional[str]) -> bool:
    """Check whether a config value is empty or an unfilled `your_...` placeholder."""
    if not value:
        return True
    return str(value).strip().lower().startswith("your_")
