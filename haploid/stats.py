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
Summary statistics of genotype frequency vectors.
"""
import math

import numpy as np

from haploid import genotypes


def _num_loci(frequencies):
    n = len(frequencies)
    if n < 2 or n & (n - 1) != 0:
        raise ValueError("Number of genotype frequencies must be a power of two")
    return n.bit_length() - 1


def mean_fitness(frequencies, fitness) -> float:
    """
    Returns the population mean fitness, ``sum(f[i] * W[i])``.
    """
    f = np.asarray(frequencies, dtype=float)
    w = np.asarray(fitness, dtype=float)
    if f.shape != w.shape:
        raise ValueError("Frequency and fitness vectors must have the same length")
    return float(np.dot(f, w))


def euclidean_distance(a, b) -> float:
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same length")
    return math.sqrt(np.sum((a - b) ** 2))


def allele_frequencies(frequencies):
    """
    Returns the frequency of allele 1 at each locus.
    """
    space = genotypes.GenotypeSpace(_num_loci(frequencies))
    return space.genotype_to_allele(frequencies)


def linkage_disequilibrium(frequencies) -> float:
    """
    Returns the coefficient of linkage disequilibrium
    ``D = f[0] * f[3] - f[1] * f[2]`` for a two-locus frequency vector.
    """
    f = np.asarray(frequencies, dtype=float)
    if len(f) != 4:
        raise ValueError("Linkage disequilibrium D is defined for two loci only")
    return float(f[0] * f[-1] - f[1] * f[-2])


def pairwise_linkage_disequilibrium(frequencies):
    """
    Returns the ``(num_loci, num_loci)`` matrix of linkage disequilibria
    ``D[i, j] = p_ij - p_i * p_j``, where ``p_ij`` is the frequency of
    haplotypes carrying allele 1 at both locus ``i`` and locus ``j``. The
    diagonal holds ``p_i * (1 - p_i)``.
    """
    space = genotypes.GenotypeSpace(_num_loci(frequencies))
    f = space.check_frequencies(frequencies)
    alleles = space.alleles.astype(float)
    joint = alleles.T @ (alleles * f[:, np.newaxis])
    p = np.diag(joint)
    return joint - np.outer(p, p)
