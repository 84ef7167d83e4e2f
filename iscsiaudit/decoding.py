#!/usr/bin/env python3
"""
Typed decode step for storage control API responses.

The API returns loosely typed JSON objects in which numeric fields may arrive
as floats. Each decoder returns a fully populated record or raises
DecodeError; raw dictionaries never leave this module's callers.
"""

import logging
from typing import Any, Dict, List, Callable, TypeVar

from .errors import DecodeError
from .models import Association, Extent, SessionRecord, Target


T = TypeVar('T')

logger = logging.getLogger(__name__)


def _require_mapping(kind: str, raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise DecodeError(kind, '<record>', raw, reason="not an object")
    return raw


def _as_int(value: Any) -> int | None:
    """Return value as an int if it is an integral number, else None."""
    # bool is an int subclass but never a valid id
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _int_field(kind: str, raw: Dict[str, Any], name: str) -> int:
    if (value := _as_int(raw.get(name))) is None:
        raise DecodeError(kind, name, raw.get(name))
    return value


def _str_field(kind: str, raw: Dict[str, Any], name: str, default: str | None = None) -> str:
    value = raw.get(name, default)
    if not isinstance(value, str):
        raise DecodeError(kind, name, value)
    return value


def decode_target(raw: Any) -> Target:
    """Decode an ``iscsi.target`` record."""
    raw = _require_mapping('target', raw)
    return Target(
        id=_int_field('target', raw, 'id'),
        name=_str_field('target', raw, 'name'),
    )


def decode_extent(raw: Any) -> Extent:
    """Decode an ``iscsi.extent`` record."""
    raw = _require_mapping('extent', raw)
    # FILE extents have no disk; null is as good as empty
    disk = raw.get('disk')
    return Extent(
        id=_int_field('extent', raw, 'id'),
        name=_str_field('extent', raw, 'name'),
        disk=_str_field('extent', raw, 'disk') if disk is not None else "",
        # Untagged extents are never treated as zvol-backed
        type=_str_field('extent', raw, 'type', ""),
    )


def decode_association(raw: Any) -> Association:
    """Decode an ``iscsi.targetextent`` record."""
    raw = _require_mapping('association', raw)
    return Association(
        id=_int_field('association', raw, 'id'),
        target=_int_field('association', raw, 'target'),
        extent=_int_field('association', raw, 'extent'),
    )


def decode_session(raw: Any) -> SessionRecord:
    """
    Decode an ``iscsi.global.sessions`` record.

    Session records are never rejected for a missing target reference; fields
    of the wrong type are simply treated as absent so the session resolver can
    fall through to the next strategy.
    """
    raw = _require_mapping('session', raw)

    target: int | str | None = None
    value = raw.get('target')
    if (numeric := _as_int(value)) is not None:
        target = numeric
    elif isinstance(value, str) and value:
        target = value

    def optional_str(name: str) -> str | None:
        value = raw.get(name)
        return value if isinstance(value, str) and value else None

    return SessionRecord(
        target=target,
        target_alias=optional_str('target_alias'),
        target_name=optional_str('target_name'),
        initiator=optional_str('initiator'),
    )


def decode_list(kind: str, raw: Any, decoder: Callable[[Any], T], skip_invalid: bool = False) -> List[T]:
    """
    Decode a list response with the given per-record decoder.

    Args:
        kind: Resource kind, used in error messages
        raw: Raw response (expected to be a JSON array)
        decoder: Decoder applied to every element
        skip_invalid: Drop elements that fail to decode instead of raising

    Returns:
        List of decoded records

    Raises:
        DecodeError: If the response is not a list, or an element is invalid
            and skip_invalid is not set
    """
    if not isinstance(raw, list):
        raise DecodeError(kind, '<response>', raw, reason="not a list")
    if not skip_invalid:
        return [decoder(item) for item in raw]

    records: List[T] = []
    for i, item in enumerate(raw):
        try:
            records.append(decoder(item))
        except DecodeError as e:
            logger.debug(f"Skipping {kind} record {i}: {e}")
    return records
