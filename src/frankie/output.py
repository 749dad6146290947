"""Rendering of command results as JSON, tables or key/value lists."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from typing import IO, Any, Mapping, Sequence

from rich.console import Console
from rich.table import Table


def _console(stream: IO[str] | None) -> Console:
    return Console(file=stream or sys.stdout, highlight=False, soft_wrap=True)


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def print_json(data: Any, stream: IO[str] | None = None) -> None:
    """Write *data* as indented JSON followed by a newline."""
    out = stream or sys.stdout
    out.write(json.dumps(data, indent=2, ensure_ascii=False, default=_default))
    out.write("\n")


def print_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    stream: IO[str] | None = None,
) -> None:
    """Print rows under bold headers without borders."""
    table = Table(box=None, show_edge=False, pad_edge=False, header_style="bold")
    for header in headers:
        table.add_column(header, no_wrap=True, overflow="fold")
    for row in rows:
        table.add_row(*("" if cell is None else str(cell) for cell in row))
    _console(stream).print(table)


def print_key_values(
    keys: Sequence[str],
    pairs: Mapping[str, Any],
    stream: IO[str] | None = None,
) -> None:
    """Print ``Key:  value`` lines in the order of *keys*, skipping absent keys."""
    present = [k for k in keys if pairs.get(k) not in (None, "")]
    if not present:
        return
    width = max(len(k) + 1 for k in present)
    out = stream or sys.stdout
    for key in present:
        out.write(f"{key + ':':<{width}}  {pairs[key]}\n")


__all__ = ["print_json", "print_table", "print_key_values"]
