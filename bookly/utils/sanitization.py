from typing import Optional

import bleach


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Strip all HTML markup from user-supplied text to prevent stored XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()


def validate_and_sanitize_input(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Validate and sanitize free-text user input (notes, reasons, review bodies).

    Args:
        value: Input string to validate
        max_length: Maximum allowed length

    Returns:
        Sanitized string, or None for empty input

    Raises:
        ValueError: If input is too long
    """
    if value is None:
        return None

    value = str(value).strip()
    if not value:
        return None

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    return sanitize_string(value)
