"""
Emptiness rules and recursive cleanup for Lambda configuration values.

A value is "empty" when the Lambda API would treat it as not supplied:
None, the empty string, or a collection whose members are all empty.
"""

from typing import Any, Dict, FrozenSet, Optional, Tuple

# Member-key sets whose lists must be sent even when empty. A mapping holding
# any key of a set is protected wherever it sits (today only VpcConfig's
# SubnetIds/SecurityGroupIds). The API reads an omitted list as "unchanged"
# and an empty one as "detach".
PRESERVED_LIST_MEMBERS: Tuple[FrozenSet[str], ...] = (
    frozenset({"SubnetIds", "SecurityGroupIds"}),
)


def _preserved_keys(mapping: Dict) -> FrozenSet[str]:
    """Return the list keys protected for this mapping, if it matches a member set."""
    keys: FrozenSet[str] = frozenset()
    for protected in PRESERVED_LIST_MEMBERS:
        if protected.intersection(mapping):
            keys = keys | protected
    return keys


def is_empty(value: Any) -> bool:
    """
    Decide whether a value is semantically absent.

    Args:
        value: Any JSON-like value

    Returns:
        True for None, "", empty collections and collections of empty values
    """
    if value is None or (isinstance(value, str) and value == ""):
        return True

    if isinstance(value, (list, tuple)):
        return len(value) == 0 or all(is_empty(item) for item in value)

    if isinstance(value, dict):
        if _preserved_keys(value):
            return False
        return len(value) == 0 or all(is_empty(v) for v in value.values())

    return False


def normalize(value: Any) -> Optional[Any]:
    """
    Recursively strip empty members from a configuration value.

    Args:
        value: Any JSON-like value

    Returns:
        The cleaned value, or None when nothing meaningful remains
    """
    if value is None or (isinstance(value, str) and value == ""):
        return None

    if isinstance(value, (list, tuple)):
        cleaned = [normalize(item) for item in value]
        kept = [item for item in cleaned if item is not None]
        return kept if kept else None

    if isinstance(value, dict):
        preserved = _preserved_keys(value)
        result = {}
        for key, member in value.items():
            if key in preserved:
                result[key] = list(member) if isinstance(member, (list, tuple)) else []
                continue
            cleaned = normalize(member)
            if cleaned is not None:
                result[key] = cleaned
        return result if result else None

    return value
