"""Identifier and timestamp helpers shared by the graph operations."""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo

from supplygraph.config.schema import MAX_NODE_ID
from supplygraph.errors import InvalidIDError

_DECIMAL_RE = re.compile(r"[0-9]+")


def node_id(value: int) -> str:
    """Encode a node id for the API boundary."""
    return str(value)


def parse_node_id(raw: str) -> int:
    """Decode a decimal node id string.

    Args:
        raw: Identifier as received from a caller.

    Returns:
        int: The unsigned 32-bit identifier.

    Raises:
        InvalidIDError: If the string is not a plain decimal number in range.
    """
    if not isinstance(raw, str) or not _DECIMAL_RE.fullmatch(raw):
        raise InvalidIDError(f"invalid node id {raw!r}: expected a decimal number")
    if len(raw.lstrip("0")) > len(str(MAX_NODE_ID)):
        raise InvalidIDError(f"invalid node id: {len(raw)}-digit value exceeds 32-bit range")
    value = int(raw)
    if value > MAX_NODE_ID:
        raise InvalidIDError(f"invalid node id {raw!r}: exceeds 32-bit range")
    return value


def normalize_time(value: datetime, zone: tzinfo = timezone.utc) -> datetime:
    """Express a timestamp in the store's fixed zone.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(zone)


def same_instant(a: datetime, b: datetime) -> bool:
    """Compare two aware timestamps as points in time.

    Datetimes sharing a tzinfo compare by wall clock, which conflates the
    two occurrences of a repeated daylight-saving hour.
    """
    return a.astimezone(timezone.utc) == b.astimezone(timezone.utc)
