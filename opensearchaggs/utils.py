import copy
from typing import Any, Dict, Iterable, Optional


def deep_merge(base: Optional[Dict[str, Any]], update: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``update`` into a copy of ``base``; nested dicts are merged, ``None`` removes a key."""
    result = dict(base or {})
    for key, value in update.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def next_id(ids: Iterable[str]) -> str:
    numeric = [int(id) for id in ids if id.isdecimal()]
    if not numeric:
        return '1'
    return str(max(numeric) + 1)
