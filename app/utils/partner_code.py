"""
Partner code utilities.

Partner codes are short, shareable referral codes built from the partner's
initials and a per-prefix sequence number ("ds001").
"""

import re

PARTNER_CODE_PATTERN = re.compile(r"^[a-z]{2}\d{3,}$")


def partner_code_prefix(first_name: str | None, last_name: str | None) -> str:
    """
    Build the two-letter code prefix from a partner's initials.

    Missing or non-alphabetic initials are replaced by "x".

    Args:
        first_name: First name
        last_name: Last name

    Returns:
        Lowercase two-letter prefix
    """
    def initial(name: str | None) -> str:
        name = (name or "").strip()
        if name and name[0].isascii() and name[0].isalpha():
            return name[0].lower()
        return "x"

    return f"{initial(first_name)}{initial(last_name)}"


def build_partner_code(prefix: str, sequence: int) -> str:
    """Format a partner code from prefix and 1-based sequence number."""
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    return f"{prefix}{sequence:03d}"


def normalize_partner_code(code: str) -> str:
    """Normalize user-entered codes for lookup."""
    return code.strip().lower()


def is_valid_partner_code(code: str) -> bool:
    """Check code format."""
    return bool(PARTNER_CODE_PATTERN.match(normalize_partner_code(code)))
