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
Recombination tables: the probability of each offspring genotype given the
genotypes of its two parents.

A gamete is formed by copying alleles from the two parents left to right
along the chromosome. Which parent is being copied is a two-state Markov
chain: it starts in either parent with probability 1/2, and at the junction
between loci ``i`` and ``i + 1`` it switches parent with probability equal
to the recombination fraction ``r[i]``. The probability of a given offspring
is the total probability of the copying paths that reproduce the offspring's
allele at every locus, which we compute with the forward algorithm.
"""
from __future__ import annotations

import collections.abc
import concurrent.futures
import logging
import threading

import numpy as np

from haploid import exceptions
from haploid import genotypes
from haploid import intervals
from haploid import sparse

logger = logging.getLogger(__name__)


def recombination_probability(target, mom, dad, recombination_map) -> float:
    """
    Returns the probability that a gamete formed by parents with genotypes
    ``mom`` and ``dad`` has genotype ``target``.

    :param int target: The offspring genotype.
    :param int mom: The genotype of one parent.
    :param int dad: The genotype of the other parent.
    :param RecombinationMap recombination_map: The recombination fractions
        between adjacent loci.
    """
    r = recombination_map.fractions
    num_loci = recombination_map.num_loci
    alpha_mom = 0.5 if (target & 1) == (mom & 1) else 0.0
    alpha_dad = 0.5 if (target & 1) == (dad & 1) else 0.0
    for i in range(1, num_loci):
        t = (target >> i) & 1
        # Written as a + r(b - a) so that equal states are carried over exactly.
        next_mom = alpha_mom + r[i - 1] * (alpha_dad - alpha_mom)
        next_dad = alpha_dad + r[i - 1] * (alpha_mom - alpha_dad)
        alpha_mom = next_mom if t == (mom >> i) & 1 else 0.0
        alpha_dad = next_dad if t == (dad >> i) & 1 else 0.0
    return alpha_mom + alpha_dad


def _target_probabilities(target, alleles, fractions):
    """
    Returns the (num_genotypes, num_genotypes) matrix whose (mom, dad) entry
    is the probability of producing ``target``. This is the forward
    algorithm of :func:`recombination_probability` run for every pair of
    parents at once.
    """
    num_loci = alleles.shape[1]
    target_alleles = (target >> np.arange(num_loci)) & 1
    compatible = alleles == target_alleles
    # Parents whose alleles differ from the target's at the same locus can
    # never produce it; we only run the recursion over the other pairs.
    mismatch = ~compatible
    possible = ~(mismatch.astype(np.int64) @ mismatch.T.astype(np.int64)).astype(bool)
    compatible = compatible.astype(float)
    alpha_mom = 0.5 * compatible[:, 0][:, np.newaxis] * possible
    alpha_dad = 0.5 * compatible[:, 0][np.newaxis, :] * possible
    for i in range(1, num_loci):
        r = fractions[i - 1]
        diff = alpha_dad - alpha_mom
        next_mom = alpha_mom + r * diff
        next_dad = alpha_dad - r * diff
        alpha_mom = next_mom * compatible[:, i][:, np.newaxis]
        alpha_dad = next_dad * compatible[:, i][np.newaxis, :]
    return alpha_mom + alpha_dad


class RecombinationTable(collections.abc.Sequence):
    """
    The probability distribution over offspring genotypes for every pair of
    parental genotypes. ``table[k]`` is a :class:`.SparseMatrix` whose
    ``(mom, dad)`` entry is the probability that parents ``mom`` and ``dad``
    produce a gamete with genotype ``k``.

    Tables are immutable once built and may be shared between simulations
    using the same recombination map. Use :func:`build_table` or
    :meth:`RecombinationTableBuilder.build` to create them.
    """

    def __init__(self, recombination_map, matrices):
        self._recombination_map = recombination_map
        self._space = genotypes.GenotypeSpace(recombination_map.num_loci)
        if len(matrices) != self._space.num_genotypes:
            raise ValueError(
                f"Must have {self._space.num_genotypes} matrices, one per genotype"
            )
        for matrix in matrices:
            if matrix.size != self._space.num_genotypes:
                raise ValueError("Matrix size does not match the genotype space")
            matrix.freeze()
        self._matrices = tuple(matrices)
        self._coo = None
        self._lock = threading.Lock()

    @property
    def recombination_map(self) -> intervals.RecombinationMap:
        return self._recombination_map

    @property
    def genotype_space(self) -> genotypes.GenotypeSpace:
        return self._space

    @property
    def num_loci(self) -> int:
        return self._space.num_loci

    @property
    def num_genotypes(self) -> int:
        return self._space.num_genotypes

    @property
    def num_entries(self) -> int:
        return sum(matrix.num_entries for matrix in self._matrices)

    def __len__(self):
        return len(self._matrices)

    def __getitem__(self, target):
        return self._matrices[target]

    def __repr__(self):
        return (
            f"RecombinationTable(num_loci={self.num_loci}, "
            f"num_entries={self.num_entries})"
        )

    def probability(self, target, mom, dad) -> float:
        """
        Returns the probability that parents ``mom`` and ``dad`` produce
        offspring ``target``.
        """
        return self._matrices[target].get(mom, dad)

    def offspring_distribution(self, mom, dad):
        """
        Returns the array of probabilities of each offspring genotype from
        parents ``mom`` and ``dad``.
        """
        return np.array([matrix.get(mom, dad) for matrix in self._matrices])

    def coo_arrays(self):
        """
        Returns the ``(target, mom, dad, value)`` arrays holding every entry
        of the table, ordered by target.
        """
        with self._lock:
            if self._coo is None:
                parts = []
                for target, matrix in enumerate(self._matrices):
                    row, column, value = matrix.arrays
                    target_column = np.full(len(row), target, dtype=np.int64)
                    parts.append((target_column, row, column, value))
                coo = tuple(np.concatenate(columns) for columns in zip(*parts))
                for array in coo:
                    array.flags.writeable = False
                self._coo = coo
        return self._coo

    def reduce(self, mating_table):
        """
        Returns the offspring genotype frequencies produced by the specified
        mating table: entry ``k`` is ``self[k].weighted_sum(mating_table)``.
        """
        M = np.asarray(mating_table, dtype=float)
        n = self.num_genotypes
        if M.shape != (n, n):
            raise ValueError(f"Mating table must have shape ({n}, {n})")
        target, mom, dad, value = self.coo_arrays()
        return np.bincount(target, weights=value * M[mom, dad], minlength=n)

    def dump(self, filename):
        """
        Writes this table to the specified HDF5 file.
        """
        # Imported here to avoid a circular import.
        from haploid import formats

        formats.dump_table(self, filename)

    @staticmethod
    def load(filename) -> RecombinationTable:
        """
        Reads a table previously written with :meth:`dump`.
        """
        from haploid import formats

        return formats.load_table(filename)


class RecombinationTableBuilder:
    """
    Builds :class:`.RecombinationTable` instances.

    The matrix for each offspring genotype is computed independently, so
    the work can be spread over ``num_threads`` worker threads. Each worker
    computes whole matrices; these are assembled into the table in
    genotype order once all have completed.

    :param int num_threads: The number of worker threads to use.
    """

    def __init__(self, *, num_threads=1):
        if num_threads < 1:
            raise ValueError("Must have at least one thread")
        self.num_threads = num_threads

    def _build_matrix(self, target, alleles, fractions, num_genotypes):
        P = _target_probabilities(target, alleles, fractions)
        mom, dad = np.nonzero(P > 0)
        # Guard against accumulated rounding pushing a certainty above one.
        value = np.minimum(P[mom, dad], 1.0)
        logger.debug("Genotype %d: %d non-zero parent pairs", target, len(mom))
        return sparse.SparseMatrix.from_arrays(num_genotypes, mom, dad, value)

    def build(self, num_loci, recombination_map) -> RecombinationTable:
        """
        Returns the recombination table for ``num_loci`` loci with the
        specified recombination fractions.

        :param int num_loci: The number of loci.
        :param recombination_map: A :class:`.RecombinationMap`, a single
            recombination fraction or a list of ``num_loci - 1`` fractions.
        :raises InvalidRecombinationFractionError: if any fraction is not
            in [0, 1].
        :raises AllocationFailureError: if the table cannot be allocated.
        """
        space = genotypes.GenotypeSpace(num_loci)
        rmap = intervals.parse_recombination_map(space.num_loci, recombination_map)
        num_genotypes = space.num_genotypes
        alleles = space.alleles
        fractions = rmap.fractions
        logger.info(
            "Building recombination table for %d loci using %d threads",
            space.num_loci,
            self.num_threads,
        )
        try:
            if self.num_threads == 1:
                matrices = [
                    self._build_matrix(target, alleles, fractions, num_genotypes)
                    for target in range(num_genotypes)
                ]
            else:
                with concurrent.futures.ThreadPoolExecutor(
                    max_workers=self.num_threads
                ) as executor:
                    futures = [
                        executor.submit(
                            self._build_matrix,
                            target,
                            alleles,
                            fractions,
                            num_genotypes,
                        )
                        for target in range(num_genotypes)
                    ]
                    matrices = [future.result() for future in futures]
        except MemoryError as e:
            raise exceptions.AllocationFailureError(
                f"Cannot allocate recombination table for {num_loci} loci"
            ) from e
        table = RecombinationTable(rmap, matrices)
        logger.info("Built recombination table with %d entries", table.num_entries)
        return table


def build_table(num_loci, recombination_map, *, num_threads=1) -> RecombinationTable:
    """
    Returns the recombination table for ``num_loci`` loci with the specified
    recombination fractions. See :meth:`RecombinationTableBuilder.build`.
    """
    builder = RecombinationTableBuilder(num_threads=num_threads)
    return builder.build(num_loci, recombination_map)


_table_cache = {}
_table_cache_lock = threading.Lock()


def get_table(num_loci, recombination_map, *, num_threads=1) -> RecombinationTable:
    """
    Returns the recombination table for the specified parameters, reusing
    a previously built table with the same number of loci and recombination
    fractions if one exists.
    """
    rmap = intervals.parse_recombination_map(num_loci, recombination_map)
    key = rmap.key()
    with _table_cache_lock:
        table = _table_cache.get(key, None)
    if table is not None:
        logger.debug("Reusing cached recombination table for %d loci", num_loci)
        return table
    # Built without the lock so that tables for other maps are not held up.
    # If another thread finished the same table first, we return its copy.
    table = build_table(num_loci, rmap, num_threads=num_threads)
    with _table_cache_lock:
        return _table_cache.setdefault(key, table)


def clear_table_cache():
    with _table_cache_lock:
        _table_cache.clear()


def two_locus_tensor(fraction):
    """
    Returns the dense ``(4, 4, 4)`` array ``T[mom][dad][offspring]`` for two
    loci separated by the specified recombination fraction, computed by
    enumerating the crossover patterns directly.
    """
    rmap = intervals.RecombinationMap(fractions=[fraction])
    r = rmap[0]
    T = np.zeros((4, 4, 4))
    for mom in range(4):
        for dad in range(4):
            # No crossover: the gamete is a copy of one parent.
            T[mom, dad, mom] += 0.5 * (1 - r)
            T[mom, dad, dad] += 0.5 * (1 - r)
            # Crossover: locus 0 from one parent and locus 1 from the other.
            T[mom, dad, (mom & 1) | (dad & 2)] += 0.5 * r
            T[mom, dad, (dad & 1) | (mom & 2)] += 0.5 * r
    return T
