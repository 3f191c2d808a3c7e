"""Remote snapshot index with tolerant key lookup.

Historic custom values were not always created with today's key names, so a
desired key is matched against the remote snapshot in order:

1. exact name
2. case-insensitive name
3. normalized: lowercased, whitespace runs replaced by underscores
   ("02 VSL Text" -> "02_vsl_text")
4. dash-folded: hyphens, with any surrounding spaces, become underscores
   ("Sub - Headline" -> "sub_headline")
5. compact: whitespace, underscores and hyphens removed
   ("02 Optin Sub-Headline Text" and "02_optin_subheadline_text" ->
   "02optinsubheadlinetext")

Each level is applied to both the remote names and the desired key.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from src.app.funnels.schemas import CustomValue

_WHITESPACE_RE = re.compile(r"\s+")
_DASH_RE = re.compile(r"\s*-+\s*")
_SEPARATORS_RE = re.compile(r"[\s_\-]+")


def normalize_key(name: str) -> str:
    return _WHITESPACE_RE.sub("_", name.strip().lower())


def fold_dashes(name: str) -> str:
    return normalize_key(_DASH_RE.sub("_", name))


def compact_key(name: str) -> str:
    return _SEPARATORS_RE.sub("", name.lower())


_FALLBACK_FORMS: tuple[Callable[[str], str], ...] = (str.lower, normalize_key, fold_dashes, compact_key)


class RemoteIndex:
    """Layered lookup maps over a remote snapshot.

    When several remote records collide on a fallback form, the first one
    listed wins.
    """

    def __init__(self, records: Iterable[CustomValue]) -> None:
        self._exact: dict[str, CustomValue] = {}
        self._fallbacks: list[dict[str, CustomValue]] = [{} for _ in _FALLBACK_FORMS]
        for record in records:
            if not record.name:
                continue
            self._exact.setdefault(record.name, record)
            self._index_fallbacks(record)

    def _index_fallbacks(self, record: CustomValue) -> None:
        for form, table in zip(_FALLBACK_FORMS, self._fallbacks):
            table.setdefault(form(record.name), record)

    def __len__(self) -> int:
        return len(self._exact)

    def find(self, key: str) -> CustomValue | None:
        found = self._exact.get(key)
        if found is not None:
            return found
        for form, table in zip(_FALLBACK_FORMS, self._fallbacks):
            found = table.get(form(key))
            if found is not None:
                return found
        return None

    def remember(self, record: CustomValue) -> None:
        """Index a record created during this push so later keys see it."""
        if record.name and record.id:
            self._exact[record.name] = record
            self._index_fallbacks(record)
