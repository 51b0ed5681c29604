#
# Copyright (C) 2009-2021 The haploid developers
#
# This file is part of haploid.
#
# haploid is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# haploid is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with haploid.  If not, see <http://www.gnu.org/licenses/>.
#
"""
Core functions and classes used throughout haploid.
"""
from __future__ import annotations

import numbers
import random
import threading
from typing import Any
from typing import List
from typing import Union

__version__ = "1.0.0"


# Seeds for runs that are not given one are drawn from a single generator,
# created on first use from the system's source of randomness. Trials may
# be started from several threads at once, so access goes through a lock.

_seed_rng: Union[random.Random, None] = None
_seed_rng_lock = threading.Lock()


def get_seed_rng() -> Union[random.Random, None]:
    return _seed_rng


def clear_seed_rng():
    global _seed_rng
    with _seed_rng_lock:
        _seed_rng = None


def get_random_seed() -> int:
    global _seed_rng
    with _seed_rng_lock:
        if _seed_rng is None:
            _seed_rng = random.Random()
        return _seed_rng.randint(1, 2**32 - 1)


def set_seed_rng_seed(seed: int):
    """
    Makes the seeds chosen for unseeded runs deterministic, so that tests
    can check them.
    """
    global _seed_rng
    with _seed_rng_lock:
        _seed_rng = random.Random(seed)


def isinteger(value: Any) -> bool:
    """
    Returns True if the specified value can be converted losslessly to an
    integer.
    """
    if isinstance(value, numbers.Number):
        # Mypy doesn't realise we've done an isinstance here.
        return int(value) == float(value)  # type: ignore
    return False


def _text_table_row(cells, alignments, widths):
    # Cells may hold several lines; shorter cells are padded with blanks.
    num_lines = max(len(cell) for cell in cells)
    lines = []
    for j in range(num_lines):
        parts = []
        for cell, align, width in zip(cells, alignments, widths):
            text = cell[j] if j < len(cell) else ""
            parts.append(f" {text:{align}{width}} ")
        lines.append("│" + "│".join(parts) + "│\n")
    return "".join(lines)


def text_table(
    caption: str,
    column_titles: List[List[str]],
    column_alignments: List[str],
    data: List[List[List[str]]],
):
    """
    Returns the specified rows drawn as a boxed text table under the
    specified caption. Each cell is a list of the lines of text shown in it,
    and each alignment is a format-spec alignment character (``"<"``,
    ``">"`` or ``"^"``).
    """
    num_columns = len(column_titles)
    if len(column_alignments) != num_columns:
        raise ValueError("Must specify one alignment per column")
    widths = [0] * num_columns
    for row in [column_titles] + data:
        if len(row) != num_columns:
            raise ValueError("Each row must have one cell per column")
        for j, cell in enumerate(row):
            widths[j] = max([widths[j]] + [len(line) for line in cell])
    hline = "─" * (sum(widths) + 3 * num_columns - 1)
    out = [f"{caption}\n", f"┌{hline}┐\n"]
    out.append(_text_table_row(column_titles, column_alignments, widths))
    out.append(f"├{hline}┤\n")
    for row in data:
        out.append(_text_table_row(row, column_alignments, widths))
    out.append(f"└{hline}┘\n")
    return "".join(out)
