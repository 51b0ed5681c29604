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
Tests for the mating rules.
"""
import numpy as np
import pytest

import haploid
from haploid import mating


class TestNormaliseTable:
    def test_normalise(self):
        M = mating.normalise_table(np.array([[1.0, 1.0], [2.0, 0.0]]))
        np.testing.assert_allclose(M, [[0.25, 0.25], [0.5, 0]])

    @pytest.mark.parametrize("value", [0, np.nan, np.inf])
    def test_failure(self, value):
        with pytest.raises(haploid.NormalizationFailureError):
            mating.normalise_table(np.full((2, 2), value))


class TestRandomMating:
    def test_outer_product(self):
        f = np.array([0.1, 0.2, 0.3, 0.4])
        M = haploid.RandomMating().mating_table(f)
        np.testing.assert_allclose(M, np.outer(f, f))

    def test_normalises(self):
        f = np.array([1, 1, 2, 0])
        M = haploid.RandomMating()(f)
        assert np.sum(M) == pytest.approx(1)
        assert M[2, 2] == pytest.approx(0.25)

    def test_symmetric(self):
        f = np.random.default_rng(1).random(8)
        M = haploid.RandomMating()(f)
        np.testing.assert_array_equal(M, M.T)

    def test_zero_frequencies(self):
        with pytest.raises(haploid.NormalizationFailureError):
            haploid.RandomMating()(np.zeros(4))

    def test_repr(self):
        assert repr(haploid.RandomMating()) == "RandomMating()"


class TestAssortativeMating:
    def test_defaults(self):
        rule = haploid.AssortativeMating()
        assert rule.distortion == 0.1
        assert rule.loci is None
        assert rule.name == "assortative"

    @pytest.mark.parametrize("distortion", [-0.1, 1.1])
    def test_bad_distortion(self, distortion):
        with pytest.raises(ValueError):
            haploid.AssortativeMating(distortion)

    def test_half_is_random(self):
        f = np.random.default_rng(2).random(8)
        M1 = haploid.AssortativeMating(0.5)(f)
        M2 = haploid.RandomMating()(f)
        np.testing.assert_allclose(M1, M2)

    def test_zero_distortion_only_identical_pairs(self):
        f = np.full(4, 0.25)
        M = haploid.AssortativeMating(0)(f)
        np.testing.assert_allclose(M, np.eye(4) / 4)

    def test_weights(self):
        rule = haploid.AssortativeMating(0.2)
        w = rule.weights(4)
        expected = np.full((4, 4), 0.2)
        np.fill_diagonal(expected, 0.8)
        np.testing.assert_allclose(w, expected)
        assert rule.weights(4) is w

    def test_weights_single_locus_compared(self):
        rule = haploid.AssortativeMating(0.2, loci=[0])
        w = rule.weights(4)
        # Genotypes 0 and 2 share allele 0 at locus 0, as do 1 and 3.
        assert w[0, 2] == pytest.approx(0.8)
        assert w[1, 3] == pytest.approx(0.8)
        assert w[0, 1] == 0.2
        assert w[2, 3] == 0.2

    def test_distorted_table(self):
        d = 0.1
        f = np.array([0.4, 0.1, 0.2, 0.3])
        M = haploid.AssortativeMating(d)(f)
        W = np.full((4, 4), d)
        np.fill_diagonal(W, 1 - d)
        expected = np.outer(f, f) * W
        np.testing.assert_allclose(M, expected / np.sum(expected))
        assert np.sum(M) == pytest.approx(1)

    @pytest.mark.parametrize("n", [1, 3, 6])
    def test_not_power_of_two(self, n):
        with pytest.raises(ValueError):
            haploid.AssortativeMating()(np.ones(n))

    def test_repr(self):
        assert "distortion=0.3" in repr(haploid.AssortativeMating(0.3))


class TestFunctionMating:
    def test_wraps_function(self):
        def identical(f):
            return np.diag(f)

        rule = haploid.FunctionMating(identical)
        M = rule(np.array([1.0, 3.0]))
        np.testing.assert_allclose(M, [[0.25, 0], [0, 0.75]])
        assert "identical" in repr(rule)

    def test_not_callable(self):
        with pytest.raises(TypeError):
            haploid.FunctionMating(1234)

    def test_negative(self):
        rule = haploid.FunctionMating(lambda f: -np.ones((2, 2)))
        with pytest.raises(ValueError):
            rule(np.ones(2))

    def test_zero(self):
        rule = haploid.FunctionMating(lambda f: np.zeros((2, 2)))
        with pytest.raises(haploid.NormalizationFailureError):
            rule(np.ones(2))


class TestMatingFactory:
    def test_none(self):
        assert isinstance(haploid.mating_factory(None), haploid.RandomMating)

    @pytest.mark.parametrize(
        ["name", "cls"],
        [
            ("random", haploid.RandomMating),
            ("RANDOM", haploid.RandomMating),
            ("assortative", haploid.AssortativeMating),
            ("Assortative", haploid.AssortativeMating),
        ],
    )
    def test_strings(self, name, cls):
        assert isinstance(haploid.mating_factory(name), cls)

    def test_unknown_string(self):
        with pytest.raises(ValueError):
            haploid.mating_factory("panmixia")

    def test_provider(self):
        rule = haploid.AssortativeMating(0.2)
        assert haploid.mating_factory(rule) is rule

    def test_callable(self):
        rule = haploid.mating_factory(lambda f: np.outer(f, f))
        assert isinstance(rule, haploid.FunctionMating)

    @pytest.mark.parametrize("value", [1, 0.5, [1, 2]])
    def test_bad_type(self, value):
        with pytest.raises(TypeError):
            haploid.mating_factory(value)

    def test_abstract(self):
        with pytest.raises(NotImplementedError):
            haploid.MatingTableProvider()(np.ones(2))
