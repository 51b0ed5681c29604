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
Sparse storage for genotype x genotype probability surfaces.
"""
from __future__ import annotations

import math

import numpy as np

from haploid import core
from haploid import exceptions


class SparseMatrix:
    """
    A square matrix of probabilities in which only the non-zero entries are
    stored. Each entry is a ``(row, column, value)`` triple with ``value``
    in ``(0, 1]``; setting an entry to zero removes it.

    Once :meth:`freeze` has been called the matrix is read-only.

    :param int size: The number of rows (and columns) in the matrix.
    """

    def __init__(self, size):
        if not core.isinteger(size) or size < 1:
            raise ValueError("Matrix size must be a positive integer")
        self._size = int(size)
        self._entries = {}
        self._arrays = None
        self._frozen = False

    @classmethod
    def from_arrays(cls, size, row, column, value):
        """
        Returns a new SparseMatrix built from parallel arrays of row indexes,
        column indexes and values. Zero values are skipped.
        """
        row = np.asarray(row)
        column = np.asarray(column)
        value = np.asarray(value, dtype=float)
        if not (row.shape == column.shape == value.shape) or row.ndim != 1:
            raise ValueError("row, column and value must be 1D arrays of equal length")
        matrix = cls(size)
        if len(row) > 0:
            if np.any(row < 0) or np.any(row >= size):
                raise IndexError("Row index out of bounds")
            if np.any(column < 0) or np.any(column >= size):
                raise IndexError("Column index out of bounds")
        if np.any(np.isnan(value)) or np.any(value < 0) or np.any(value > 1):
            raise exceptions.InvalidValueError("Sparse values must be in [0, 1]")
        keep = value > 0
        keys = zip(row[keep].tolist(), column[keep].tolist())
        matrix._entries = dict(zip(keys, value[keep].tolist()))
        if len(matrix._entries) != np.sum(keep):
            raise ValueError("Duplicate (row, column) entries")
        return matrix

    @classmethod
    def from_dense(cls, dense):
        dense = np.asarray(dense, dtype=float)
        if dense.ndim != 2 or dense.shape[0] != dense.shape[1]:
            raise ValueError("Dense matrix must be square")
        row, column = np.nonzero(dense)
        return cls.from_arrays(dense.shape[0], row, column, dense[row, column])

    @property
    def size(self) -> int:
        return self._size

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def num_entries(self) -> int:
        return len(self._entries)

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        """
        Iterates over the ``(row, column, value)`` triples in row-major order.
        """
        row, column, value = self.arrays
        yield from zip(row.tolist(), column.tolist(), value.tolist())

    def __repr__(self):
        return f"SparseMatrix(size={self._size}, num_entries={self.num_entries})"

    def __eq__(self, other):
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        return self._size == other._size and self._entries == other._entries

    def _check_index(self, row, column):
        if not (0 <= row < self._size and 0 <= column < self._size):
            raise IndexError(f"Entry ({row}, {column}) out of bounds")

    def freeze(self):
        """
        Marks this matrix as read-only. Subsequent calls to :meth:`set` raise
        a ValueError.
        """
        if self._arrays is None:
            self._arrays = self._make_arrays()
        self._frozen = True

    def set(self, row, column, value):
        """
        Sets the value at ``(row, column)``, replacing any existing entry.
        A value of zero removes the entry.

        :raises InvalidValueError: if ``value`` is NaN or outside [0, 1].
        """
        if self._frozen:
            raise ValueError("Cannot modify a frozen SparseMatrix")
        value = float(value)
        if math.isnan(value) or value < 0 or value > 1:
            raise exceptions.InvalidValueError(
                f"Sparse value {value} at ({row}, {column}) must be in [0, 1]"
            )
        row = int(row)
        column = int(column)
        self._check_index(row, column)
        if value == 0:
            self._entries.pop((row, column), None)
        else:
            self._entries[(row, column)] = value
        self._arrays = None

    def get(self, row, column) -> float:
        """
        Returns the value at ``(row, column)``, or 0 if there is no entry.
        """
        return self._entries.get((row, column), 0.0)

    @property
    def arrays(self):
        """
        The ``(row, column, value)`` arrays of the stored entries, sorted by
        row and then by column. The arrays are read-only.
        """
        if self._arrays is None:
            self._arrays = self._make_arrays()
        return self._arrays

    def _make_arrays(self):
        n = len(self._entries)
        row = np.empty(n, dtype=np.int64)
        column = np.empty(n, dtype=np.int64)
        value = np.empty(n, dtype=float)
        for j, ((r, c), v) in enumerate(self._entries.items()):
            row[j] = r
            column[j] = c
            value[j] = v
        order = np.lexsort((column, row))
        arrays = (row[order], column[order], value[order])
        for array in arrays:
            array.flags.writeable = False
        return arrays

    def weighted_sum(self, dense) -> float:
        """
        Returns the sum over stored entries ``(r, c, v)`` of
        ``v * dense[r][c]``. Runs in time proportional to the number of
        stored entries.
        """
        dense = np.asarray(dense)
        if dense.shape != (self._size, self._size):
            raise ValueError(
                f"Dense matrix must have shape ({self._size}, {self._size})"
            )
        row, column, value = self.arrays
        return float(np.dot(value, dense[row, column]))

    def total(self) -> float:
        """
        Returns the sum of the stored values.
        """
        return math.fsum(self._entries.values())

    def to_dense(self):
        dense = np.zeros((self._size, self._size))
        row, column, value = self.arrays
        dense[row, column] = value
        return dense
