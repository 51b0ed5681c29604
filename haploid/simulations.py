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
Deterministic simulation of genotype frequencies under selection, mating
and recombination.
"""
from __future__ import annotations

import concurrent.futures
import dataclasses
import logging
import math
from typing import List
from typing import Union

import numpy as np

from haploid import core
from haploid import exceptions
from haploid import genotypes
from haploid import intervals
from haploid import mating
from haploid import recombination
from haploid import stats

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9
DEFAULT_MAX_GENERATIONS = 10**6


def selection(frequencies, fitness):
    """
    Returns the genotype frequencies after viability selection,
    ``f[i] * W[i] / w_bar`` where ``w_bar`` is the mean fitness.

    :raises DegenerateFitnessError: if the mean fitness is not positive.
    """
    f = np.asarray(frequencies, dtype=float)
    w = np.asarray(fitness, dtype=float)
    wbar = stats.mean_fitness(f, w)
    if not wbar > 0 or not math.isfinite(wbar):
        raise exceptions.DegenerateFitnessError(
            f"Mean fitness {wbar} must be positive and finite"
        )
    return f * w / wbar


def normalise(frequencies):
    """
    Returns the specified frequencies divided by their total.

    :raises NormalizationFailureError: if the total is not positive.
    """
    total = np.sum(frequencies)
    if not total > 0 or not math.isfinite(total):
        raise exceptions.NormalizationFailureError(
            f"Cannot normalise frequency vector with total {total}"
        )
    return frequencies / total


def step(frequencies, fitness, table, provider=None):
    """
    Returns the genotype frequencies of the next generation: selection on
    ``fitness``, then mating according to ``provider`` and gamete formation
    according to the recombination ``table``. The inputs are not modified.

    :param frequencies: The current genotype frequencies.
    :param fitness: The fitness of each genotype.
    :param RecombinationTable table: The recombination table.
    :param provider: The mating rule; random mating by default.
    """
    provider = mating.mating_factory(provider)
    f = selection(frequencies, fitness)
    M = np.asarray(provider(f), dtype=float)
    n = table.num_genotypes
    if M.shape != (n, n):
        raise ValueError(f"Mating table must have shape ({n}, {n})")
    return normalise(table.reduce(M))


def has_converged(previous, current, tolerance) -> bool:
    """
    Returns True if the Euclidean distance between the two frequency vectors
    is less than ``tolerance``.
    """
    return stats.euclidean_distance(previous, current) < tolerance


class GenerationStepper:
    """
    Advances genotype frequencies by one generation under a fixed fitness
    vector, recombination table and mating rule.
    """

    def __init__(self, table, fitness=None, provider=None):
        self.table = table
        n = table.num_genotypes
        if fitness is None:
            fitness = np.ones(n)
        fitness = np.array(fitness, dtype=float)
        if fitness.shape != (n,):
            raise ValueError(f"Fitness vector must have {n} entries")
        if np.any(np.isnan(fitness)) or np.any(fitness < 0):
            raise ValueError("Fitness values must be non-negative")
        fitness.flags.writeable = False
        self.fitness = fitness
        self.provider = mating.mating_factory(provider)

    def step(self, frequencies):
        return step(frequencies, self.fitness, self.table, self.provider)

    def __call__(self, frequencies):
        return self.step(frequencies)


@dataclasses.dataclass
class TrialResult:
    """
    The outcome of iterating a single initial frequency vector to
    convergence.
    """

    index: int
    initial_frequencies: np.ndarray
    frequencies: Union[np.ndarray, None] = None
    num_generations: int = 0
    converged: bool = False
    error: Union[Exception, None] = None
    trajectory: Union[np.ndarray, None] = None

    @property
    def allele_frequencies(self):
        if self.frequencies is None:
            return None
        return stats.allele_frequencies(self.frequencies)

    @property
    def linkage_disequilibrium(self):
        """
        The linkage disequilibrium D of the final frequencies for two-locus
        models, or None otherwise.
        """
        if self.frequencies is None or len(self.frequencies) != 4:
            return None
        return stats.linkage_disequilibrium(self.frequencies)


def corner_frequencies(space, index, rng):
    """
    The first ``num_genotypes`` trials start fixed for the genotype equal
    to the trial index. Later trials start at linkage equilibrium with
    allele frequencies drawn uniformly from [0, 1].
    """
    if index < space.num_genotypes:
        allele_freqs = space.alleles[index].astype(float)
    else:
        allele_freqs = rng.random(space.num_loci)
    return space.allele_to_genotype(allele_freqs)


def random_frequencies(space, index, rng):
    """
    Linkage equilibrium with allele frequencies drawn uniformly from [0, 1].
    """
    return space.allele_to_genotype(rng.random(space.num_loci))


def add_linkage_disequilibrium(frequencies, D):
    """
    Returns the two-locus frequencies with ``D`` added to the coupling
    genotypes (0 and 3) and subtracted from the repulsion genotypes (1 and 2).
    """
    f = np.array(frequencies, dtype=float)
    if len(f) != 4:
        raise ValueError("Linkage disequilibrium can only be added for two loci")
    f += D * np.array([1, -1, -1, 1])
    if np.any(f < 0):
        raise ValueError(f"Adding D={D} gives negative genotype frequencies")
    return f


_initial_frequencies_map = {
    "corners": corner_frequencies,
    "random": random_frequencies,
}


def _parse_random_seed(seed):
    """
    Parse the specified random seed value. If no seed is provided, generate a
    high-quality random seed.
    """
    if seed is None:
        seed = core.get_random_seed()
    if isinstance(seed, np.ndarray):
        seed = seed[0]
    seed = int(seed)
    return seed


def _parse_positive_int(value, name):
    if not core.isinteger(value) or value < 1:
        raise ValueError(f"{name} must be a positive integer")
    return int(value)


def _check_frequency_vector(frequencies, num_genotypes):
    f = np.array(frequencies, dtype=float)
    if f.shape != (num_genotypes,):
        raise ValueError(f"Frequency vector must have {num_genotypes} entries")
    if np.any(np.isnan(f)) or np.any(f < 0):
        raise ValueError("Frequencies must be non-negative")
    return normalise(f)


class Simulator:
    """
    Iterates genotype frequency vectors to equilibrium.

    :param GenerationStepper stepper: The generation transform to apply.
    :param float tolerance: Iteration stops when the Euclidean distance
        between successive generations is less than this value.
    :param int max_generations: The maximum number of generations to run
        for each trial.
    """

    def __init__(
        self,
        stepper,
        *,
        tolerance=DEFAULT_TOLERANCE,
        max_generations=DEFAULT_MAX_GENERATIONS,
    ):
        if not tolerance > 0:
            raise ValueError("Tolerance must be positive")
        self.stepper = stepper
        self.tolerance = tolerance
        self.max_generations = _parse_positive_int(max_generations, "max_generations")

    @property
    def num_genotypes(self):
        return self.stepper.table.num_genotypes

    def run(self, initial_frequencies, *, index=0, record_trajectory=False):
        """
        Iterates the specified frequencies until they converge or the
        generation limit is reached, and returns a :class:`.TrialResult`.
        """
        f = _check_frequency_vector(initial_frequencies, self.num_genotypes)
        result = TrialResult(index=index, initial_frequencies=f.copy())
        trajectory = [f] if record_trajectory else None
        generation = 0
        converged = False
        while generation < self.max_generations and not converged:
            previous = f
            f = self.stepper(previous)
            generation += 1
            converged = has_converged(previous, f, self.tolerance)
            if trajectory is not None:
                trajectory.append(f)
            logger.debug("Trial %d generation %d: %s", index, generation, f)
        if not converged:
            logger.warning(
                "Trial %d failed to converge after %d generations",
                index,
                generation,
            )
        result.frequencies = f
        result.num_generations = generation
        result.converged = converged
        if trajectory is not None:
            result.trajectory = np.array(trajectory)
        return result

    def _run_trial(self, index, initial, record_trajectory, skip_failed):
        logger.info("Starting trial %d", index)
        try:
            result = self.run(
                initial, index=index, record_trajectory=record_trajectory
            )
        except (
            exceptions.DegenerateFitnessError,
            exceptions.NormalizationFailureError,
        ) as e:
            if not skip_failed:
                raise
            logger.warning("Trial %d abandoned: %s", index, e)
            result = TrialResult(
                index=index, initial_frequencies=np.asarray(initial), error=e
            )
        logger.info(
            "Finished trial %d after %d generations", index, result.num_generations
        )
        return result

    def run_trials(
        self,
        initial_frequencies,
        *,
        record_trajectory=False,
        skip_failed=False,
        num_threads=1,
    ):
        """
        Sequentially yield the results of iterating each of the specified
        initial frequency vectors. If ``num_threads`` is more than one,
        trials are run concurrently and yielded in order.
        """
        if num_threads < 1:
            raise ValueError("Must have at least one thread")
        if num_threads == 1:
            for index, initial in enumerate(initial_frequencies):
                yield self._run_trial(index, initial, record_trajectory, skip_failed)
        else:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=num_threads
            ) as executor:
                futures = [
                    executor.submit(
                        self._run_trial,
                        index,
                        initial,
                        record_trajectory,
                        skip_failed,
                    )
                    for index, initial in enumerate(initial_frequencies)
                ]
                for future in futures:
                    yield future.result()


def _parse_initial_frequencies(initial_frequencies, space, num_trials, random_seed):
    """
    Returns the list of initial frequency vectors, one per trial.
    """
    if initial_frequencies is None:
        initial_frequencies = "corners"
    if isinstance(initial_frequencies, str):
        if initial_frequencies not in _initial_frequencies_map:
            raise ValueError(
                "Initial frequencies '{}' unknown. Choose from {}".format(
                    initial_frequencies, list(_initial_frequencies_map.keys())
                )
            )
        generator = _initial_frequencies_map[initial_frequencies]
        rng = np.random.default_rng(_parse_random_seed(random_seed))
        return [generator(space, j, rng) for j in range(num_trials)]
    initial = np.array(initial_frequencies, dtype=float)
    if initial.ndim == 1:
        initial = initial[np.newaxis, :]
    if initial.ndim != 2 or initial.shape[1] != space.num_genotypes:
        raise ValueError(
            f"Initial frequencies must be vectors of {space.num_genotypes} values"
        )
    return list(initial)


def sim_trials(
    num_loci,
    recombination_map=None,
    *,
    fitness=None,
    mating_rule=None,
    num_trials=None,
    initial_frequencies=None,
    tolerance=DEFAULT_TOLERANCE,
    max_generations=DEFAULT_MAX_GENERATIONS,
    random_seed=None,
    record_trajectory=False,
    skip_failed=False,
    num_threads=1,
    table=None,
) -> List[TrialResult]:
    """
    Iterates a set of initial genotype frequency vectors under selection,
    mating and recombination until each converges, and returns the list of
    :class:`.TrialResult` objects.

    :param int num_loci: The number of loci.
    :param recombination_map: A :class:`.RecombinationMap`, a single
        recombination fraction or a list of ``num_loci - 1`` fractions.
        Defaults to the map of ``table`` if one is given, and to free
        recombination (0.5) otherwise.
    :param fitness: The fitness of each of the ``2**num_loci`` genotypes.
        Defaults to equal fitnesses.
    :param mating_rule: A :class:`.MatingTableProvider`, a callable or one of
        the strings "random" or "assortative". Defaults to random mating.
    :param int num_trials: The number of trials. Defaults to the number of
        genotypes, or the number of explicit initial vectors.
    :param initial_frequencies: Either "corners" (the default), "random",
        or an explicit frequency vector or list of vectors.
    :param float tolerance: The convergence tolerance.
    :param int max_generations: The generation cap for each trial.
    :param int random_seed: The seed for drawing random initial frequencies.
    :param bool record_trajectory: If True, store every generation's
        frequencies in the results.
    :param bool skip_failed: If True, trials that fail with degenerate
        fitness or normalisation errors are reported with their ``error``
        set rather than aborting the run.
    :param int num_threads: The number of threads used to run trials.
    :param RecombinationTable table: A prebuilt table to use. If not
        specified, a cached table for the map is used.
    """
    space = genotypes.GenotypeSpace(num_loci)
    if table is not None:
        if table.num_loci != space.num_loci:
            raise ValueError(
                f"Table is for {table.num_loci} loci, not {space.num_loci}"
            )
        if recombination_map is None:
            recombination_map = table.recombination_map
    rmap = intervals.parse_recombination_map(space.num_loci, recombination_map)
    if table is None:
        table = recombination.get_table(space.num_loci, rmap, num_threads=num_threads)
    elif table.recombination_map != rmap:
        raise ValueError("Table was not built for the specified recombination map")
    if num_trials is None:
        if initial_frequencies is None or isinstance(initial_frequencies, str):
            num_trials = space.num_genotypes
        else:
            num_trials = len(np.array(initial_frequencies, ndmin=2))
    num_trials = _parse_positive_int(num_trials, "num_trials")
    initial = _parse_initial_frequencies(
        initial_frequencies, space, num_trials, random_seed
    )
    if len(initial) != num_trials:
        raise ValueError("Number of initial frequency vectors must equal num_trials")
    stepper = GenerationStepper(table, fitness, mating_rule)
    simulator = Simulator(
        stepper, tolerance=tolerance, max_generations=max_generations
    )
    return list(
        simulator.run_trials(
            initial,
            record_trajectory=record_trajectory,
            skip_failed=skip_failed,
            num_threads=num_threads,
        )
    )
