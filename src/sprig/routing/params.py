"""Path parameter conversion.

Captured parameters are always strings; handlers convert explicitly.
"""

import re

from sprig.errors import BadRequest

_INT = re.compile(r"[+-]?[0-9]+")


def convert_int(name: str, value: str) -> int:
    """Convert a captured parameter to ``int`` (base 10, optional sign).

    Raises ``BadRequest`` when *value* is not a base-10 integer.
    Whitespace, underscores and non-ASCII digits are rejected.
    """
    if not _INT.fullmatch(value):
        msg = f"Parameter {name!r} must be an integer, got {value!r}"
        raise BadRequest(msg)
    return int(value)
