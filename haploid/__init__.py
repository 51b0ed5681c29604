# Turn off flake8 and reorder-python-imports for this file.
# flake8: NOQA
# noreorder
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
Haploid is a simulator of genotype frequency dynamics in multi-locus
haploid populations under selection, mating and recombination.
"""

from haploid.core import __version__

from haploid.exceptions import (
    HaploidException,
    InvalidLocusError,
    InvalidRecombinationFractionError,
    InvalidValueError,
    DegenerateFitnessError,
    NormalizationFailureError,
    AllocationFailureError,
    FileFormatError,
    VersionTooNewError,
    VersionTooOldError,
)

from haploid.genotypes import GenotypeSpace, popcount
from haploid.sparse import SparseMatrix
from haploid.intervals import RecombinationMap

from haploid.recombination import (
    RecombinationTable,
    RecombinationTableBuilder,
    build_table,
    clear_table_cache,
    get_table,
    recombination_probability,
    two_locus_tensor,
)

from haploid.mating import (
    AssortativeMating,
    FunctionMating,
    MatingTableProvider,
    RandomMating,
    mating_factory,
)

from haploid.simulations import (
    GenerationStepper,
    Simulator,
    TrialResult,
    add_linkage_disequilibrium,
    has_converged,
    selection,
    sim_trials,
    step,
)

from haploid.stats import (
    allele_frequencies,
    euclidean_distance,
    linkage_disequilibrium,
    mean_fitness,
    pairwise_linkage_disequilibrium,
)

from haploid.formats import dump_table, load_table
from haploid.provenance import parse_provenance

__all__ = [
    "AllocationFailureError",
    "AssortativeMating",
    "DegenerateFitnessError",
    "FileFormatError",
    "FunctionMating",
    "GenerationStepper",
    "GenotypeSpace",
    "HaploidException",
    "InvalidLocusError",
    "InvalidRecombinationFractionError",
    "InvalidValueError",
    "MatingTableProvider",
    "NormalizationFailureError",
    "RandomMating",
    "RecombinationMap",
    "RecombinationTable",
    "RecombinationTableBuilder",
    "Simulator",
    "SparseMatrix",
    "TrialResult",
    "VersionTooNewError",
    "VersionTooOldError",
    "add_linkage_disequilibrium",
    "allele_frequencies",
    "build_table",
    "clear_table_cache",
    "dump_table",
    "euclidean_distance",
    "get_table",
    "has_converged",
    "linkage_disequilibrium",
    "load_table",
    "mating_factory",
    "mean_fitness",
    "pairwise_linkage_disequilibrium",
    "parse_provenance",
    "popcount",
    "recombination_probability",
    "selection",
    "sim_trials",
    "step",
    "two_locus_tensor",
]
