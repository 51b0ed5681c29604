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
Tests for the summary statistics of frequency vectors.
"""
import math

import numpy as np
import pytest

import haploid


class TestMeanFitness:
    def test_mean(self):
        assert haploid.mean_fitness([0.5, 0.5], [1, 3]) == 2

    def test_mismatched(self):
        with pytest.raises(ValueError):
            haploid.mean_fitness([0.5, 0.5], [1, 2, 3])


class TestEuclideanDistance:
    def test_distance(self):
        assert haploid.euclidean_distance([0, 0], [3, 4]) == 5

    def test_zero(self):
        f = [0.1, 0.2, 0.3, 0.4]
        assert haploid.euclidean_distance(f, f) == 0

    def test_mismatched(self):
        with pytest.raises(ValueError):
            haploid.euclidean_distance([0, 0], [1])


class TestAlleleFrequencies:
    def test_two_loci(self):
        f = [0.1, 0.2, 0.3, 0.4]
        np.testing.assert_allclose(haploid.allele_frequencies(f), [0.6, 0.7])

    def test_fixed(self):
        f = np.zeros(8)
        f[5] = 1
        np.testing.assert_array_equal(haploid.allele_frequencies(f), [1, 0, 1])

    @pytest.mark.parametrize("n", [0, 1, 3, 5])
    def test_bad_length(self, n):
        with pytest.raises(ValueError):
            haploid.allele_frequencies(np.ones(n) / max(n, 1))


class TestLinkageDisequilibrium:
    def test_equilibrium(self):
        space = haploid.GenotypeSpace(2)
        f = space.allele_to_genotype([0.3, 0.6])
        assert haploid.linkage_disequilibrium(f) == pytest.approx(0, abs=1e-15)

    def test_coupling(self):
        assert haploid.linkage_disequilibrium([0.5, 0, 0, 0.5]) == 0.25

    def test_repulsion(self):
        assert haploid.linkage_disequilibrium([0, 0.5, 0.5, 0]) == -0.25

    def test_added(self):
        space = haploid.GenotypeSpace(2)
        f = haploid.add_linkage_disequilibrium(
            space.allele_to_genotype([0.3, 0.6]), 0.05
        )
        assert haploid.linkage_disequilibrium(f) == pytest.approx(0.05)

    def test_not_two_loci(self):
        with pytest.raises(ValueError):
            haploid.linkage_disequilibrium(np.ones(8) / 8)


class TestPairwiseLinkageDisequilibrium:
    def test_two_loci_matches_d(self):
        f = np.array([0.33, 0.07, 0.37, 0.23])
        D = haploid.pairwise_linkage_disequilibrium(f)
        assert D.shape == (2, 2)
        assert D[0, 1] == pytest.approx(haploid.linkage_disequilibrium(f))
        assert D[1, 0] == pytest.approx(D[0, 1])

    def test_diagonal(self):
        f = np.random.default_rng(3).random(8)
        f /= np.sum(f)
        D = haploid.pairwise_linkage_disequilibrium(f)
        p = haploid.allele_frequencies(f)
        np.testing.assert_allclose(np.diag(D), p * (1 - p))

    def test_equilibrium(self):
        space = haploid.GenotypeSpace(3)
        f = space.allele_to_genotype([0.1, 0.5, 0.8])
        D = haploid.pairwise_linkage_disequilibrium(f)
        off_diagonal = D[~np.eye(3, dtype=bool)]
        np.testing.assert_allclose(off_diagonal, 0, atol=1e-15)

    def test_bounds(self):
        f = np.random.default_rng(4).random(16)
        f /= np.sum(f)
        D = haploid.pairwise_linkage_disequilibrium(f)
        assert np.all(np.abs(D) <= 0.25 + 1e-15)
        assert not math.isnan(np.sum(D))
