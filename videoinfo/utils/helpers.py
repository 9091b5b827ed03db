"""
Utility helper functions for safe data handling.
"""
from typing import Any, Callable, Iterable, Optional


def safe_str(value: Any, default: str = "") -> str:
    """
    Safely convert value to string, handling None.

    Args:
        value: Any value to convert
        default: Default string if value is None

    Returns:
        String representation or default
    """
    if value is None:
        return default
    return str(value)


def safe_int(value: Any, default: int = 0) -> int:
    """
    Safely convert value to int, handling None and invalid values.

    Args:
        value: Any value to convert
        default: Default int if conversion fails

    Returns:
        Integer or default
    """
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def dig(data: Any, *path: Any) -> Any:
    """
    Walk nested dicts/lists, returning None as soon as a step is missing.

    String steps index dicts, integer steps index lists.

    Example:
        dig(data, "title", "runs", 0, "text")
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
        elif not isinstance(current, dict):
            return None
        else:
            if step not in current:
                return None
        current = current[step]
    return current


def is_present(value: Any) -> bool:
    """True for anything except None and empty strings/collections."""
    if value is None:
        return False
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) > 0
    return True


def first_present(
    extractors: Iterable[Callable[[Any], Any]],
    source: Any,
    default: Any = "",
    accept: Optional[Callable[[Any], bool]] = None,
) -> Any:
    """
    Run extractors in priority order and return the first present value.

    Args:
        extractors: Callables taking ``source`` and returning a value or None
        source: Object handed to every extractor
        default: Returned when no extractor yields a value
        accept: Optional extra predicate a value must satisfy

    Returns:
        The first present (and accepted) value, or ``default``
    """
    for extract in extractors:
        value = extract(source)
        if not is_present(value):
            continue
        if accept is not None and not accept(value):
            continue
        return value
    return default
