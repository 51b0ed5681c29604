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
Tests for the recombination map.
"""
import math

import numpy as np
import pytest

import haploid
from haploid import intervals


class TestConstructor:
    def test_fractions(self):
        rm = haploid.RecombinationMap(fractions=[0.1, 0.2, 0.3])
        assert rm.num_loci == 4
        assert len(rm) == 3
        np.testing.assert_array_equal(rm.fractions, [0.1, 0.2, 0.3])
        assert rm[1] == 0.2
        assert list(rm) == [0.1, 0.2, 0.3]

    def test_single_locus(self):
        rm = haploid.RecombinationMap(fractions=[], num_loci=1)
        assert rm.num_loci == 1
        assert len(rm) == 0

    def test_num_loci_mismatch(self):
        with pytest.raises(ValueError):
            haploid.RecombinationMap(fractions=[0.1, 0.2], num_loci=4)

    @pytest.mark.parametrize("num_loci", [0, -2, 1.5])
    def test_bad_num_loci(self, num_loci):
        with pytest.raises(ValueError):
            haploid.RecombinationMap(fractions=[], num_loci=num_loci)

    @pytest.mark.parametrize(
        "fractions", [[-0.1], [1.1], [math.nan], [0.1, 2], [0.5, -math.inf]]
    )
    def test_bad_fractions(self, fractions):
        with pytest.raises(haploid.InvalidRecombinationFractionError):
            haploid.RecombinationMap(fractions=fractions)

    def test_boundary_fractions(self):
        rm = haploid.RecombinationMap(fractions=[0, 1])
        np.testing.assert_array_equal(rm.fractions, [0, 1])

    def test_keyword_only(self):
        with pytest.raises(TypeError):
            haploid.RecombinationMap([0.1])

    def test_read_only(self):
        rm = haploid.RecombinationMap(fractions=[0.1, 0.2])
        with pytest.raises(ValueError):
            rm.fractions[0] = 0.5
        with pytest.raises(AttributeError):
            rm.fractions = [0.5, 0.5]

    def test_input_not_aliased(self):
        fractions = np.array([0.1, 0.2])
        rm = haploid.RecombinationMap(fractions=fractions)
        fractions[0] = 0.4
        assert rm[0] == 0.1

    def test_stay(self):
        rm = haploid.RecombinationMap(fractions=[0.1, 0.25])
        np.testing.assert_allclose(rm.stay, [0.9, 0.75])
        assert rm.total_fraction == pytest.approx(0.35)

    def test_getitem_type(self):
        rm = haploid.RecombinationMap(fractions=[0.1, 0.25])
        with pytest.raises(TypeError):
            rm[0.5]
        with pytest.raises(TypeError):
            rm[0:1]


class TestUniform:
    @pytest.mark.parametrize("num_loci", [1, 2, 6])
    def test_uniform(self, num_loci):
        rm = haploid.RecombinationMap.uniform(num_loci, 0.25)
        assert rm.num_loci == num_loci
        assert np.all(rm.fractions == 0.25)
        assert len(rm) == num_loci - 1

    def test_bad_fraction(self):
        with pytest.raises(haploid.InvalidRecombinationFractionError):
            haploid.RecombinationMap.uniform(3, 0.75 * 2)

    @pytest.mark.parametrize("fraction", [1.5, math.nan, -2])
    def test_bad_fraction_single_locus(self, fraction):
        with pytest.raises(haploid.InvalidRecombinationFractionError):
            haploid.RecombinationMap.uniform(1, fraction)


class TestGeneticDistances:
    def test_haldane(self):
        rm = haploid.RecombinationMap.from_genetic_distances([0, 0.1, 100])
        assert rm[0] == 0
        assert rm[1] == pytest.approx((1 - math.exp(-0.2)) / 2)
        assert rm[2] == pytest.approx(0.5)

    def test_kosambi(self):
        rm = haploid.RecombinationMap.from_genetic_distances(
            [0, 0.1, 100], mapping="kosambi"
        )
        assert rm[0] == 0
        assert rm[1] == pytest.approx(math.tanh(0.2) / 2)
        assert rm[2] == pytest.approx(0.5)

    def test_small_distances_close_to_fraction(self):
        rm = haploid.RecombinationMap.from_genetic_distances([1e-6])
        assert rm[0] == pytest.approx(1e-6, rel=1e-5)

    def test_bad_distance(self):
        with pytest.raises(ValueError):
            haploid.RecombinationMap.from_genetic_distances([-1])

    def test_bad_mapping(self):
        with pytest.raises(ValueError):
            haploid.RecombinationMap.from_genetic_distances([1], mapping="morgan")


class TestEquality:
    def test_equal(self):
        a = haploid.RecombinationMap(fractions=[0.1, 0.2])
        b = haploid.RecombinationMap(fractions=np.array([0.1, 0.2]))
        assert a == b
        assert hash(a) == hash(b)
        assert a.key() == b.key()

    def test_not_equal(self):
        a = haploid.RecombinationMap(fractions=[0.1, 0.2])
        assert a != haploid.RecombinationMap(fractions=[0.1, 0.3])
        assert a != haploid.RecombinationMap(fractions=[0.1])
        assert a != [0.1, 0.2]

    def test_asdict(self):
        a = haploid.RecombinationMap(fractions=[0.1, 0.2])
        b = haploid.RecombinationMap(**a.asdict())
        assert a == b

    def test_str_repr(self):
        a = haploid.RecombinationMap(fractions=[0.1, 0.2])
        assert "num_loci=3" in str(a)
        assert "0.1" in repr(a)


class TestParseRecombinationMap:
    def test_map(self):
        rm = haploid.RecombinationMap(fractions=[0.1])
        assert intervals.parse_recombination_map(2, rm) is rm

    def test_map_wrong_num_loci(self):
        rm = haploid.RecombinationMap(fractions=[0.1])
        with pytest.raises(ValueError):
            intervals.parse_recombination_map(3, rm)

    def test_scalar(self):
        rm = intervals.parse_recombination_map(4, 0.2)
        assert rm == haploid.RecombinationMap.uniform(4, 0.2)

    @pytest.mark.parametrize("num_loci", [1, 3, 4])
    def test_single_value_list_wrong_length(self, num_loci):
        with pytest.raises(ValueError):
            intervals.parse_recombination_map(num_loci, [0.2])

    def test_single_value_list_two_loci(self):
        rm = intervals.parse_recombination_map(2, [0.2])
        assert rm == haploid.RecombinationMap.uniform(2, 0.2)

    def test_numpy_scalar(self):
        rm = intervals.parse_recombination_map(4, np.float64(0.2))
        assert rm == haploid.RecombinationMap.uniform(4, 0.2)

    def test_list(self):
        rm = intervals.parse_recombination_map(3, [0.1, 0.2])
        assert rm == haploid.RecombinationMap(fractions=[0.1, 0.2])

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            intervals.parse_recombination_map(3, [0.1, 0.2, 0.3])

    def test_default_is_free_recombination(self):
        rm = intervals.parse_recombination_map(3, None)
        assert rm == haploid.RecombinationMap.uniform(3, 0.5)
