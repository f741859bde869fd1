"""Sparse UPDATE builder.

Learn: Profile updates only touch the fields the caller supplied. Rather
than concatenating SQL fragments, we map the supplied fields onto a
SQLAlchemy `update()` construct. Column names are checked against the
table and every value is a bound parameter.

"Supplied" follows the long-standing API contract: absent, empty string,
zero, False and None all mean "leave unchanged". A client therefore cannot
set age to 0 or blank out a field through this path.
"""

from typing import Any, Mapping, Optional

from sqlalchemy import Column, Table, Update, update


def supplied(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Drop every falsy value; those count as "no change"."""
    return {name: value for name, value in fields.items() if value}


def build_sparse_update(
    table: Table,
    key_column: Column,
    key: Any,
    fields: Mapping[str, Any],
) -> Optional[Update]:
    """Build `UPDATE table SET <supplied fields> WHERE key_column = key`.

    Returns None when no field was supplied, so callers can skip the
    round-trip entirely.
    """
    values = supplied(fields)
    if not values:
        return None

    unknown = set(values) - set(table.c.keys())
    if unknown:
        raise ValueError(
            f"Unknown column(s) for {table.name}: {', '.join(sorted(unknown))}"
        )

    return update(table).where(key_column == key).values(**values)
