"""
Configuration diff for Lambda functions.

Compares the live function configuration against the caller's desired
(partial) configuration to decide whether UpdateFunctionConfiguration
needs to be called at all.
"""

import logging
from typing import Any, Dict, Optional

from normalize import normalize

logger = logging.getLogger(__name__)

_SEQUENCE_TYPES = (list, tuple)


def _scalar_equal(a: Any, b: Any) -> bool:
    # bool is an int subclass; True must not equal 1
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


def deep_equal(a: Any, b: Any) -> bool:
    """
    Structural equality over nested dicts, lists and scalars.

    Lists are compared index by index, so the same members in a different
    order are a difference. A list never equals a dict.

    Args:
        a: First value
        b: Second value

    Returns:
        True if both values are structurally equal
    """
    a_container = isinstance(a, (dict,) + _SEQUENCE_TYPES)
    b_container = isinstance(b, (dict,) + _SEQUENCE_TYPES)
    if not a_container or not b_container:
        if a_container or b_container:
            return False
        return _scalar_equal(a, b)

    a_seq = isinstance(a, _SEQUENCE_TYPES)
    b_seq = isinstance(b, _SEQUENCE_TYPES)
    if a_seq != b_seq:
        return False

    if a_seq:
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if len(a) != len(b):
        return False
    for key, value in a.items():
        if key not in b or not deep_equal(value, b[key]):
            return False
    return True


def has_configuration_changed(
    current: Optional[Dict[str, Any]], desired: Dict[str, Any]
) -> bool:
    """
    Check whether any supplied field differs from the live configuration.

    Only fields present in ``desired`` after normalization are inspected.
    Every differing field is logged; the scan does not stop at the first one.

    Args:
        current: Live configuration from GetFunctionConfiguration
        desired: Desired configuration keyed by API field name

    Returns:
        True if an update call is needed
    """
    if not current:
        return True

    cleaned = normalize(desired) or {}
    changed = False

    for key, value in cleaned.items():
        if key not in current:
            logger.info(f"Configuration difference detected in {key}")
            changed = True
            continue

        if isinstance(value, (dict,) + _SEQUENCE_TYPES):
            live = current[key] if current[key] is not None else {}
            if not deep_equal(live, value):
                logger.info(f"Configuration difference detected in {key}")
                changed = True
        elif not _scalar_equal(current[key], value):
            logger.info(
                f"Configuration difference detected in {key}: {current[key]} -> {value}"
            )
            changed = True

    return changed
