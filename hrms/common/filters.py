"""Generic filtering, sorting, and name search utilities."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import Select, String, and_, cast, or_
from sqlalchemy.orm import InstrumentedAttribute


# ── Sorting ─────────────────────────────────────────────────────────

def apply_sorting(
    query: Select,
    model: Any,
    sort: Optional[str],
    *,
    replace: bool = False,
) -> Select:
    """
    Parse a sort string like ``"-hire_date"`` and apply ORDER BY.

    * Leading ``-`` → DESC; otherwise ASC.
    * Only mapped columns of *model* are honoured; anything else is ignored
      so user input never reaches raw SQL.
    * ``replace=True`` drops the query's existing ORDER BY first.
    """
    if not sort:
        return query

    descending = sort.startswith("-")
    col = _get_column(model, sort.lstrip("-"))
    if col is None:
        return query

    if replace:
        query = query.order_by(None)
    return query.order_by(col.desc() if descending else col.asc())


# ── Generic filtering ──────────────────────────────────────────────

def apply_filters(
    query: Select,
    model: Any,
    filters: dict[str, Any],
) -> Select:
    """
    Apply a dict of filter parameters to a SQLAlchemy ``Select``.

    Key suffixes determine the operator:

    ============  ==================
    Suffix        Operator
    ============  ==================
    (none)        ``==``
    ``__ilike``   case-insensitive LIKE (wraps ``%…%``)
    ``__from``    ``>=``
    ``__to``      ``<=``
    ============  ==================

    ``None`` values are silently skipped.
    """
    conditions: list = []

    for key, value in filters.items():
        if value is None:
            continue

        name, _, op = key.partition("__")
        col = _get_column(model, name)
        if col is None:
            continue

        if op == "ilike":
            conditions.append(col.ilike(f"%{value}%"))
        elif op == "from":
            conditions.append(col >= value)
        elif op == "to":
            conditions.append(col <= value)
        else:
            conditions.append(col == value)

    if conditions:
        query = query.where(and_(*conditions))

    return query


# ── Name search ─────────────────────────────────────────────────────

def apply_search(
    query: Select,
    model: Any,
    search: Optional[str],
    columns: Sequence[str],
) -> Select:
    """
    Case-insensitive substring search across *columns*.

    Every whitespace-separated term must match at least one column, so
    ``"doe jane"`` finds Jane Doe.
    """
    if not search or not search.strip():
        return query

    cols = [c for c in (_get_column(model, name) for name in columns) if c is not None]
    if not cols:
        return query

    for term in search.split():
        query = query.where(or_(*(cast(c, String).ilike(f"%{term}%") for c in cols)))
    return query


# ── Internal helper ─────────────────────────────────────────────────

def _get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Return the mapped column attribute called *name*, or None."""
    attr = getattr(model, name, None)
    if isinstance(attr, InstrumentedAttribute):
        return attr
    return None
