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
Recombination fractions between adjacent loci.
"""
from __future__ import annotations

import collections.abc
import numbers

import numpy as np

from haploid import core
from haploid import exceptions


class RecombinationMap(collections.abc.Sequence):
    """
    The recombination fractions between each pair of adjacent loci on a
    haploid chromosome of ``num_loci`` loci. Entry ``i`` of the map is the
    probability that a crossover occurs between locus ``i`` and locus
    ``i + 1`` when a gamete is formed, so the map holds ``num_loci - 1``
    values, each in [0, 1].

    A fraction of 0 means the two loci are completely linked and a
    fraction of 0.5 means they assort independently.

    :param list fractions: The ``num_loci - 1`` recombination fractions.
    :param int num_loci: The number of loci. If specified, this must be
        one more than the number of fractions.
    """

    # The args are marked keyword only to give us some flexibility in how we
    # create this class in the future.
    def __init__(self, *, fractions, num_loci=None):
        # Making the array read-only guarantees a map is immutable once built,
        # which lets us use it as a cache key for recombination tables.
        self._fractions = np.array(fractions, dtype=float).reshape(-1)
        self._fractions.flags.writeable = False
        if num_loci is None:
            num_loci = len(self._fractions) + 1
        if not core.isinteger(num_loci) or num_loci < 1:
            raise ValueError("Number of loci must be a positive integer")
        self._num_loci = int(num_loci)
        if len(self._fractions) != self._num_loci - 1:
            raise ValueError(
                f"A map over {self._num_loci} loci must have exactly "
                f"{self._num_loci - 1} recombination fractions"
            )
        bad = np.isnan(self._fractions) | (self._fractions < 0) | (self._fractions > 1)
        if np.any(bad):
            raise exceptions.InvalidRecombinationFractionError(
                f"Recombination fractions not in [0, 1] at indexes {np.where(bad)[0]}"
            )

    @staticmethod
    def uniform(num_loci, fraction) -> RecombinationMap:
        """
        Create a map with the same recombination fraction between every pair
        of adjacent loci.
        """
        if not core.isinteger(num_loci) or num_loci < 1:
            raise ValueError("Number of loci must be a positive integer")
        fraction = float(fraction)
        # Checked here as a single locus map has no junctions to hold it.
        if not 0 <= fraction <= 1:
            raise exceptions.InvalidRecombinationFractionError(
                f"Recombination fraction {fraction} not in [0, 1]"
            )
        return RecombinationMap(
            fractions=np.full(int(num_loci) - 1, fraction, dtype=float),
            num_loci=num_loci,
        )

    @staticmethod
    def from_genetic_distances(distances, *, mapping="haldane") -> RecombinationMap:
        r"""
        Create a map from genetic distances (in Morgans) between adjacent
        loci. Under the ``"haldane"`` mapping function a distance :math:`d`
        gives the fraction :math:`r = (1 - e^{-2d}) / 2`. Under the
        ``"kosambi"`` mapping :math:`r = \tanh(2d) / 2`.
        """
        d = np.array(distances, dtype=float).reshape(-1)
        if np.any(np.isnan(d)) or np.any(d < 0):
            raise ValueError("Genetic distances must be non-negative")
        if mapping == "haldane":
            fractions = -np.expm1(-2 * d) / 2
        elif mapping == "kosambi":
            fractions = np.tanh(2 * d) / 2
        else:
            raise ValueError(f"Unknown mapping function '{mapping}'")
        return RecombinationMap(fractions=fractions)

    @property
    def num_loci(self) -> int:
        return self._num_loci

    @property
    def fractions(self):
        """
        The read-only array of recombination fractions.
        """
        return self._fractions

    @property
    def stay(self):
        """
        The probability that no crossover occurs at each junction, i.e.
        ``1 - fractions``.
        """
        stay = 1 - self._fractions
        stay.flags.writeable = False
        return stay

    @property
    def total_fraction(self) -> float:
        return float(np.sum(self._fractions))

    def key(self):
        """
        Returns a hashable value identifying this map.
        """
        return (self._num_loci, tuple(self._fractions.tolist()))

    def asdict(self):
        return {"fractions": self._fractions.tolist(), "num_loci": self._num_loci}

    def __len__(self):
        return len(self._fractions)

    def __getitem__(self, key):
        if isinstance(key, slice):
            raise TypeError("RecombinationMap does not support slicing")
        if not isinstance(key, numbers.Integral):
            raise TypeError("RecombinationMap indexes must be integers")
        return float(self._fractions[key])

    def __eq__(self, other):
        if not isinstance(other, RecombinationMap):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self):
        return hash(self.key())

    def __str__(self):
        values = ", ".join(f"{r:.6g}" for r in self._fractions)
        return f"RecombinationMap(num_loci={self._num_loci}, fractions=[{values}])"

    def __repr__(self):
        return f"RecombinationMap(fractions={self._fractions.tolist()!r})"


def parse_recombination_map(num_loci, recombination_map) -> RecombinationMap:
    """
    Interprets the specified recombination map argument for a chromosome of
    ``num_loci`` loci. This may be a :class:`.RecombinationMap`, a single
    fraction applied between every pair of adjacent loci, or a sequence of
    ``num_loci - 1`` fractions.
    """
    if isinstance(recombination_map, RecombinationMap):
        if recombination_map.num_loci != num_loci:
            raise ValueError(
                f"Recombination map is over {recombination_map.num_loci} loci, "
                f"not {num_loci}"
            )
        return recombination_map
    if recombination_map is None:
        recombination_map = 0.5
    if isinstance(recombination_map, numbers.Number):
        return RecombinationMap.uniform(num_loci, recombination_map)
    fractions = np.array(recombination_map, dtype=float).reshape(-1)
    return RecombinationMap(fractions=fractions, num_loci=num_loci)
