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
Encoding of multi-locus biallelic haplotypes as integers.

A genotype over ``L`` loci is an integer in ``[0, 2**L)``. Bit ``i`` of
the integer gives the allele carried at locus ``i``: 0 for the ancestral
allele and 1 for the alternative allele.
"""
from __future__ import annotations

import numpy as np

from haploid import core
from haploid import exceptions

# The genotype space is materialised as dense arrays of size 2**L, so
# we keep L to a size where this is reasonable.
MAX_NUM_LOCI = 24


def popcount(x: int) -> int:
    """
    Returns the number of set bits in the specified non-negative integer.
    """
    return bin(x).count("1")


def bits_isset(x: int, pos: int) -> bool:
    return bool((x >> pos) & 1)


def _check_num_loci(num_loci):
    if not core.isinteger(num_loci):
        raise TypeError("Number of loci must be an integer")
    num_loci = int(num_loci)
    if num_loci < 1:
        raise ValueError("Number of loci must be at least 1")
    if num_loci > MAX_NUM_LOCI:
        raise ValueError(f"Number of loci must be <= {MAX_NUM_LOCI}")
    return num_loci


class GenotypeSpace:
    """
    The set of all haplotypes over a fixed number of biallelic loci.

    :param int num_loci: The number of loci ``L``; the space then holds
        ``2**L`` genotypes.
    """

    def __init__(self, num_loci):
        self._num_loci = _check_num_loci(num_loci)
        self._num_genotypes = 1 << self._num_loci
        self._alleles = None

    @property
    def num_loci(self) -> int:
        return self._num_loci

    @property
    def num_genotypes(self) -> int:
        return self._num_genotypes

    def __len__(self):
        return self._num_genotypes

    def __iter__(self):
        yield from range(self._num_genotypes)

    def __eq__(self, other):
        return isinstance(other, GenotypeSpace) and other.num_loci == self.num_loci

    def __hash__(self):
        return hash(self._num_loci)

    def __repr__(self):
        return f"GenotypeSpace(num_loci={self._num_loci})"

    def check_genotype(self, genotype) -> int:
        if not core.isinteger(genotype):
            raise TypeError("Genotypes must be integers")
        genotype = int(genotype)
        if genotype < 0 or genotype >= self._num_genotypes:
            raise ValueError(
                f"Genotype {genotype} out of bounds: must be in "
                f"[0, {self._num_genotypes})"
            )
        return genotype

    def check_locus(self, locus) -> int:
        if not core.isinteger(locus) or not 0 <= locus < self._num_loci:
            raise exceptions.InvalidLocusError(
                f"Locus {locus} out of bounds: must be in [0, {self._num_loci})"
            )
        return int(locus)

    def bit(self, genotype, locus) -> int:
        """
        Returns the allele (0 or 1) carried by the specified genotype at the
        specified locus.

        :raises InvalidLocusError: if ``locus`` is not in ``[0, num_loci)``.
        """
        locus = self.check_locus(locus)
        genotype = self.check_genotype(genotype)
        return int(bits_isset(genotype, locus))

    def hamming_distance(self, a, b) -> int:
        """
        Returns the number of loci at which genotypes ``a`` and ``b`` carry
        different alleles.
        """
        a = self.check_genotype(a)
        b = self.check_genotype(b)
        return popcount(a ^ b)

    @property
    def alleles(self):
        """
        A read-only ``(num_genotypes, num_loci)`` array in which row ``g``
        gives the alleles carried by genotype ``g``.
        """
        if self._alleles is None:
            genotypes = np.arange(self._num_genotypes, dtype=np.int64)
            loci = np.arange(self._num_loci, dtype=np.int64)
            alleles = ((genotypes[:, np.newaxis] >> loci) & 1).astype(np.int8)
            alleles.flags.writeable = False
            self._alleles = alleles
        return self._alleles

    def distance_matrix(self, loci=None):
        """
        Returns the ``(num_genotypes, num_genotypes)`` matrix of Hamming
        distances between genotypes, counting only the specified loci
        (all loci by default).
        """
        alleles = self.alleles
        if loci is not None:
            loci = [self.check_locus(locus) for locus in loci]
            alleles = alleles[:, loci]
        differ = alleles[:, np.newaxis, :] != alleles[np.newaxis, :, :]
        return np.sum(differ, axis=2)

    def allele_to_genotype(self, allele_frequencies):
        """
        Returns the genotype frequencies produced by the specified per-locus
        allele frequencies under linkage equilibrium. The frequency of
        genotype ``g`` is the product over loci of ``p_i`` where ``g``
        carries allele 1 at locus ``i`` and ``1 - p_i`` otherwise.
        """
        p = np.array(allele_frequencies, dtype=float)
        if p.shape != (self._num_loci,):
            raise ValueError(
                f"Must specify {self._num_loci} allele frequencies"
            )
        if np.any(np.isnan(p)) or np.any(p < 0) or np.any(p > 1):
            raise ValueError("Allele frequencies must be in [0, 1]")
        alleles = self.alleles
        factors = np.where(alleles == 1, p, 1 - p)
        return np.prod(factors, axis=1)

    def genotype_to_allele(self, genotype_frequencies):
        """
        Returns the frequency of allele 1 at each locus, that is the total
        frequency of the genotypes carrying allele 1 at that locus.
        """
        x = self.check_frequencies(genotype_frequencies)
        return x @ self.alleles

    def check_frequencies(self, frequencies):
        x = np.asarray(frequencies, dtype=float)
        if x.shape != (self._num_genotypes,):
            raise ValueError(
                f"Frequency vector must have {self._num_genotypes} entries"
            )
        return x
