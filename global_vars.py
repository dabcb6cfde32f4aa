# global_vars.py
import json

from errors import InvariantViolation


def fingerprint(style) -> str:
    """Deterministic serialization used as the dedup key for a style."""
    return json.dumps(style, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class GlobalVarTable:
    """Interned styles for a single conversion.

    Ids look like ``fill_0``, ``typography_3``: one counter per category,
    advanced only when a style is seen for the first time. Create a new
    table for every design; ids mean nothing outside the table that issued
    them.
    """

    def __init__(self):
        self._ids = {}
        self._styles = {}
        self._counters = {}

    def intern(self, category: str, style) -> str:
        key = fingerprint(style)
        style_id = self._ids.get((category, key))
        if style_id is not None:
            if self._styles[style_id] != style:
                raise InvariantViolation(
                    f"Style fingerprint collision on {style_id}: "
                    f"{self._styles[style_id]!r} != {style!r}"
                )
            return style_id

        index = self._counters.get(category, 0)
        self._counters[category] = index + 1
        style_id = f"{category}_{index}"
        # Stored through the fingerprint so globalVars has sorted keys.
        self._styles[style_id] = json.loads(key)
        self._ids[(category, key)] = style_id
        return style_id

    def get(self, style_id: str, default=None):
        return self._styles.get(style_id, default)

    def as_dict(self) -> dict:
        return dict(self._styles)

    def __contains__(self, style_id) -> bool:
        return style_id in self._styles

    def __len__(self) -> int:
        return len(self._styles)

    def __repr__(self) -> str:
        return f"GlobalVarTable({len(self)} styles)"
