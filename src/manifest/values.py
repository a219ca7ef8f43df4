"""Value-literal parsing for ``key = value`` manifest assignments."""

from typing import Dict, List

from .models import ManifestValue, ValueKind


def _split_items(content: str) -> List[str]:
    content = content.strip()
    if content == "":
        return []
    return [item.strip().replace('"', '') for item in content.split(',')]


def _split_pairs(content: str) -> Dict[str, str]:
    content = content.strip()
    if content == "":
        return {}
    pairs: Dict[str, str] = {}
    for pair in content.split(','):
        parts = [part.strip().replace('"', '') for part in pair.strip().split(':')]
        pairs[parts[0]] = parts[1] if len(parts) > 1 else ""
    return pairs


def parse_value(value: str) -> ManifestValue:
    """Parse the right-hand side of an assignment.

    ``"text"`` is a string, ``@[a, b]`` and ``[a, b]`` are arrays of
    unquoted items, ``{k: v}`` is a mapping, and anything else is kept as a
    raw string.
    """
    if value.startswith('"') and value.endswith('"'):
        return ManifestValue(ValueKind.STRING, value[1:-1])

    if value.startswith('@['):
        return ManifestValue(ValueKind.ARRAY, _split_items(value[2:-1]))

    if value.startswith('[') and value.endswith(']'):
        return ManifestValue(ValueKind.ARRAY, _split_items(value[1:-1]))

    if value.startswith('{') and value.endswith('}'):
        return ManifestValue(ValueKind.MAPPING, _split_pairs(value[1:-1]))

    return ManifestValue(ValueKind.STRING, value)
