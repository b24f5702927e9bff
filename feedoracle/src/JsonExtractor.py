"""JsonExtractor: Locate a numeric field in a JSON response body.

Numbers are parsed straight into :class:`DecimalLiteral` objects through the
``json`` module's number hooks, so no float is ever created between the
response text and the fixed-point value.

Only members of the top-level object are inspected. A path such as
``"data.price"`` is matched literally against top-level member names; it is
not split into nested lookups.

.. code-block:: python

    >>> doc = parse_document('{"price": 1.35e3, "name": "btc"}')
    >>> extract(doc, "price")
    DecimalLiteral(integer=1, fraction=35, fraction_digits=2, exponent=3, negative=False)
    >>> extract(doc, "name") is None
    True
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .DecimalConverter import DecimalLiteral, convert
from .OracleValue import NumericKind, OracleValue

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(
    r"(?P<sign>-)?(?P<integer>\d+)(?:\.(?P<fraction>\d+))?(?:[eE](?P<exponent>[+-]?\d+))?"
)


def parse_number(text: str) -> DecimalLiteral:
    """Split a JSON number token into its decimal components.

    :param text: Number token as it appears in the JSON text (e.g. ``"-1.5e3"``).
    :returns: The equivalent DecimalLiteral.
    :raises ValueError: If the token is not a JSON number.
    """
    match = _NUMBER_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"Invalid JSON number: {text!r}")

    negative = match.group("sign") is not None
    integer = int(match.group("integer"))
    fraction_text = match.group("fraction") or ""
    exponent = match.group("exponent")
    return DecimalLiteral(
        integer=-integer if negative else integer,
        fraction=int(fraction_text) if fraction_text else 0,
        fraction_digits=len(fraction_text),
        exponent=int(exponent) if exponent else 0,
        negative=negative,
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite JSON number {name}")


def _first_member_wins(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    obj: dict[str, Any] = {}
    for key, value in pairs:
        obj.setdefault(key, value)
    return obj


def parse_document(text: str | bytes) -> Any | None:
    """Parse a JSON response body, keeping numbers exact.

    :param text: Raw response body.
    :returns: Parsed document with every number as a DecimalLiteral, or None
        if the text is not valid JSON.
    """
    try:
        return json.loads(
            text,
            parse_int=parse_number,
            parse_float=parse_number,
            parse_constant=_reject_constant,
            object_pairs_hook=_first_member_wins,
        )
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug(f"Unparsable JSON document: {e}")
        return None


def extract(document: Any, path: str) -> DecimalLiteral | None:
    """Return the number stored under ``path`` in the top-level object.

    :param document: Document returned by :func:`parse_document`.
    :param path: Member name to look up.
    :returns: The member's DecimalLiteral, or None if the root is not an
        object, the member is missing, or its value is not a number.
    """
    if not isinstance(document, dict):
        return None
    value = document.get(path)
    if isinstance(value, DecimalLiteral):
        return value
    return None


def extract_value(
    text: str | bytes, path: str, target_kind: NumericKind
) -> OracleValue | None:
    """Parse, extract and convert in one step.

    :param text: Raw response body.
    :param path: Top-level member name holding the number.
    :param target_kind: Kind configured for the destination key.
    :returns: The converted value, or None on any failure.
    """
    literal = extract(parse_document(text), path)
    if literal is None:
        return None
    return convert(literal, target_kind)
