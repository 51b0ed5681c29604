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
Mating tables: the probability that a mating involves each pair of
parental genotypes.
"""
from __future__ import annotations

import logging

import numpy as np

from haploid import exceptions
from haploid import genotypes

logger = logging.getLogger(__name__)


def normalise_table(table):
    """
    Divides the specified non-negative matrix by its total so that it sums
    to one.

    :raises NormalizationFailureError: if the total is zero or NaN.
    """
    total = np.sum(table)
    if not total > 0 or not np.isfinite(total):
        raise exceptions.NormalizationFailureError(
            f"Cannot normalise mating table with total {total}"
        )
    return table / total


class MatingTableProvider:
    """
    Abstract superclass of all mating rules. A mating rule maps the
    genotype frequencies of the current generation to a mating table ``M``
    in which ``M[i, j]`` is the probability that a mating involves parents
    with genotypes ``i`` and ``j``. Tables are non-negative and sum to one.
    """

    name = None

    def mating_table(self, frequencies):
        raise NotImplementedError()

    def __call__(self, frequencies):
        return self.mating_table(frequencies)

    def asdict(self):
        return {}

    def __repr__(self):
        args = ", ".join(f"{k}={v!r}" for k, v in self.asdict().items())
        return f"{type(self).__name__}({args})"


class RandomMating(MatingTableProvider):
    """
    Parents are paired independently of genotype, so that
    ``M[i, j] = f[i] * f[j]``. The string ``"random"`` can be used to refer
    to this rule.
    """

    name = "random"

    def mating_table(self, frequencies):
        f = np.asarray(frequencies, dtype=float)
        return normalise_table(np.outer(f, f))


class AssortativeMating(MatingTableProvider):
    """
    Random mating distorted in favour of pairs of identical genotypes. The
    random mating probability of each pair is multiplied by
    ``1 - distortion`` if the two parents carry the same alleles at every
    one of the compared loci and by ``distortion`` otherwise, and the
    result is renormalised. A distortion of 0.5 is random mating, and a
    distortion of 0 allows only matings between identical genotypes. The
    string ``"assortative"`` can be used to refer to this rule.

    :param float distortion: The weight given to pairs of differing parents,
        in [0, 1].
    :param list loci: The loci compared when deciding whether two parents
        are alike. By default all loci are compared.
    """

    name = "assortative"

    def __init__(self, distortion=0.1, *, loci=None):
        distortion = float(distortion)
        if not 0 <= distortion <= 1:
            raise ValueError("Distortion must be in [0, 1]")
        self.distortion = distortion
        self.loci = None if loci is None else list(loci)
        self._weights = {}

    def asdict(self):
        return {"distortion": self.distortion, "loci": self.loci}

    def weights(self, num_genotypes):
        """
        Returns the matrix of factors applied to the random mating table.
        """
        if num_genotypes not in self._weights:
            num_loci = num_genotypes.bit_length() - 1
            space = genotypes.GenotypeSpace(num_loci)
            alike = space.distance_matrix(self.loci) == 0
            weights = np.where(alike, 1 - self.distortion, self.distortion)
            weights.flags.writeable = False
            self._weights[num_genotypes] = weights
        return self._weights[num_genotypes]

    def mating_table(self, frequencies):
        f = np.asarray(frequencies, dtype=float)
        n = len(f)
        if n < 2 or n & (n - 1) != 0:
            raise ValueError("Number of genotypes must be a power of two")
        return normalise_table(np.outer(f, f) * self.weights(n))


class FunctionMating(MatingTableProvider):
    """
    Wraps a function mapping a frequency vector to an unnormalised,
    non-negative mating table.
    """

    name = "function"

    def __init__(self, function):
        if not callable(function):
            raise TypeError("Mating function must be callable")
        self.function = function

    def asdict(self):
        return {"function": getattr(self.function, "__name__", repr(self.function))}

    def mating_table(self, frequencies):
        M = np.array(self.function(frequencies), dtype=float)
        if np.any(M < 0):
            raise ValueError("Mating tables must be non-negative")
        return normalise_table(M)


def mating_factory(mating) -> MatingTableProvider:
    """
    Returns a MatingTableProvider corresponding to the specified mating
    description.
    - If mating is None, random mating is returned.
    - If mating is a string, return the corresponding provider with its
      default parameters.
    - If mating is a MatingTableProvider, return it unchanged.
    - If mating is callable, wrap it in a FunctionMating.
    - Otherwise raise a type error.
    """
    mating_map = {
        "random": RandomMating,
        "assortative": AssortativeMating,
    }
    if mating is None:
        provider = RandomMating()
    elif isinstance(mating, str):
        lower = mating.lower()
        if lower not in mating_map:
            raise ValueError(
                "Mating rule '{}' unknown. Choose from {}".format(
                    mating, list(mating_map.keys())
                )
            )
        provider = mating_map[lower]()
    elif isinstance(mating, MatingTableProvider):
        provider = mating
    elif callable(mating):
        provider = FunctionMating(mating)
    else:
        raise TypeError(
            "Mating rule must be a string, a MatingTableProvider or a callable"
        )
    return provider
