"""Named-parameter query binding.

Rewrites ``:name`` markers in SQL text into positional ``$1, $2, ...``
placeholders and collects the values in marker order, one value per
occurrence. Values never touch the query text.

Usage:
    query = QueryTemplate("SELECT * FROM accounts WHERE account_id = :account")
    bound = query.bind(account="alice.near")
    rows = await database.fetch(bound)
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from core.exceptions import QueryBindingError


@dataclass(frozen=True)
class BoundQuery:
    """Executable query: positional-parameter text plus ordered values."""
    text: str
    values: Tuple[Any, ...]


def _is_marker_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_marker_char(ch: str) -> bool:
    return _is_marker_start(ch) or ("0" <= ch <= "9")


def _skip_quoted(sql: str, i: int, quote: str) -> int:
    """Return the index just past the quoted section starting at ``i``."""
    n = len(sql)
    i += 1
    while i < n:
        if sql[i] == quote:
            # doubled quote is an escaped quote
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def _skip_escaped(sql: str, i: int) -> int:
    """Skip an ``E'...'`` string starting at its quote; backslash escapes."""
    n = len(sql)
    i += 1
    while i < n:
        if sql[i] == "\\":
            i += 2
        elif sql[i] == "'":
            if i + 1 < n and sql[i + 1] == "'":
                i += 2
                continue
            return i + 1
        else:
            i += 1
    return n


def _dollar_tag(sql: str, i: int) -> Optional[str]:
    """Return the ``$tag$`` opening at ``i``, or None for ``$1`` and plain ``$``."""
    if i + 1 < len(sql) and sql[i + 1] == "$":
        return "$$"
    if i + 1 >= len(sql) or not _is_marker_start(sql[i + 1]):
        return None
    j = i + 2
    while j < len(sql) and _is_marker_char(sql[j]):
        j += 1
    if j < len(sql) and sql[j] == "$":
        return sql[i:j + 1]
    return None


def _scan(sql: str) -> List[Tuple[int, int, str]]:
    """Find marker occurrences as (start, end, name), left to right."""
    markers = []
    n = len(sql)
    i = 0
    while i < n:
        ch = sql[i]
        if ch == "'" or ch == '"':
            i = _skip_quoted(sql, i, ch)
        elif ch in "eE" and i + 1 < n and sql[i + 1] == "'" and not (i > 0 and _is_marker_char(sql[i - 1])):
            i = _skip_escaped(sql, i + 1)
        elif ch == "$" and not (i > 0 and _is_marker_char(sql[i - 1])):
            tag = _dollar_tag(sql, i)
            if tag is None:
                i += 1
            else:
                end = sql.find(tag, i + len(tag))
                i = n if end == -1 else end + len(tag)
        elif ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
        elif ch == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
        elif ch == ":":
            if sql.startswith("::", i):
                i += 2  # type cast
            elif i + 1 < n and _is_marker_start(sql[i + 1]) and not (i > 0 and _is_marker_char(sql[i - 1])):
                j = i + 2
                while j < n and _is_marker_char(sql[j]):
                    j += 1
                markers.append((i, j, sql[i + 1:j]))
                i = j
            else:
                i += 1
        else:
            i += 1
    return markers


def _as_mapping(params: Any) -> Mapping[str, Any]:
    if params is None:
        return {}
    if isinstance(params, BaseModel):
        return params.model_dump()
    if dataclasses.is_dataclass(params) and not isinstance(params, type):
        return {f.name: getattr(params, f.name) for f in dataclasses.fields(params)}
    if isinstance(params, Mapping):
        return params
    raise TypeError(f"Unsupported query parameter container: {type(params).__name__}")


class QueryTemplate:
    """SQL text with named markers, parsed once and bound many times."""

    def __init__(self, sql: str):
        self.sql = sql
        self._markers = _scan(sql)

    @property
    def names(self) -> frozenset:
        """Distinct marker names referenced by the template."""
        return frozenset(name for _, _, name in self._markers)

    def bind(self, params: Any = None, **kwargs: Any) -> BoundQuery:
        """Bind a mapping, pydantic model, dataclass or keyword arguments.

        Raises:
            QueryBindingError: if any marker has no value
        """
        values = dict(_as_mapping(params))
        values.update(kwargs)

        missing = self.names - values.keys()
        if missing:
            raise QueryBindingError(missing)

        parts = []
        ordered = []
        last = 0
        for position, (start, end, name) in enumerate(self._markers, start=1):
            parts.append(self.sql[last:start])
            parts.append(f"${position}")
            ordered.append(values[name])
            last = end
        parts.append(self.sql[last:])

        return BoundQuery(text="".join(parts), values=tuple(ordered))

    def __repr__(self) -> str:
        return f"QueryTemplate(names={sorted(self.names)!r})"


def key_binder(sql: str, params: Optional[Mapping[str, Any]] = None) -> BoundQuery:
    """One-shot bind of ``sql`` with ``params``."""
    return QueryTemplate(sql).bind(params)
