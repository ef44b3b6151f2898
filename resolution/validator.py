"""
Postal code (CEP) format check.

Runs before any network call, independently in the gateway and the resolver.
"""

import re
from typing import Any

# ASCII only: \d would also accept non-ASCII digits
_CEP_PATTERN = re.compile(r"[0-9]{8}")


def is_valid_cep(value: Any) -> bool:
    """True iff value is a string of exactly 8 ASCII decimal digits."""
    if not isinstance(value, str):
        return False
    return _CEP_PATTERN.fullmatch(value) is not None
