"""Shared utilities for domain models."""

import uuid
from decimal import Decimal


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


def to_decimal(value) -> Decimal:
    """Convert an int, float, string or Decimal to Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
