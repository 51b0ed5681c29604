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
Command line interface to the haploid library.
"""
import argparse
import logging
import os
import signal
import sys

import daiquiri

import haploid
from haploid import core
from haploid import mating
from haploid import recombination
from haploid import simulations


def set_sigpipe_handler():
    if os.name == "posix":
        # Set signal handler for SIGPIPE to quietly kill the program.
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def setup_logging(args):
    log_level = args.log_level
    if args.verbose:
        log_level = logging.INFO if args.verbose == 1 else logging.DEBUG
    log_output = daiquiri.output.Stream(
        sys.stderr,
        formatter=daiquiri.formatter.ColorFormatter(fmt="[%(levelname)s] %(message)s"),
    )
    daiquiri.setup(level=log_level, outputs=[log_output])


def positive_int(value):
    int_value = int(float(value))
    if int_value <= 0:
        msg = f"{value} is an invalid positive integer value"
        raise argparse.ArgumentTypeError(msg)
    return int_value


def unit_float(value):
    float_value = float(value)
    if not 0 <= float_value <= 1:
        msg = f"{value} is not in [0, 1]"
        raise argparse.ArgumentTypeError(msg)
    return float_value


def add_num_loci_argument(parser):
    parser.add_argument(
        "--num-loci",
        "-L",
        type=positive_int,
        default=2,
        help="The number of biallelic loci",
    )


def add_recombination_argument(parser):
    parser.add_argument(
        "--recombination",
        "-r",
        type=unit_float,
        nargs="+",
        default=[0.5],
        help=(
            "The recombination fraction between adjacent loci. Either a single "
            "value used for every pair of adjacent loci, or num_loci - 1 values."
        ),
    )


def add_threads_argument(parser):
    parser.add_argument(
        "--num-threads",
        "-t",
        type=positive_int,
        default=1,
        help="The number of worker threads",
    )


def add_random_seed_argument(parser):
    parser.add_argument(
        "--random-seed",
        "-s",
        type=int,
        default=None,
        help="The random seed. If not specified one is chosen randomly",
    )


def add_precision_argument(parser):
    parser.add_argument(
        "--precision",
        "-p",
        type=int,
        default=8,
        help="The number of decimal places to print in frequencies",
    )


def get_recombination_map(args):
    # A single -r value applies to every pair of adjacent loci.
    if len(args.recombination) == 1:
        return args.recombination[0]
    return args.recombination


def get_mating_rule(args, parser):
    if args.mating == "assortative":
        if args.distortion is None:
            return mating.AssortativeMating()
        return mating.AssortativeMating(args.distortion)
    if args.distortion is not None:
        parser.error("--distortion can only be used with assortative mating")
    return mating.RandomMating()


def format_results(results, precision):
    """
    Returns a text table summarising the specified trial results.
    """
    num_genotypes = len(results[0].initial_frequencies)
    titles = [["trial"], ["generations"], ["converged"]]
    titles += [[f"x[{k}]"] for k in range(num_genotypes)]
    titles += [["D"]]
    data = []
    for result in results:
        row = [[str(result.index)], [str(result.num_generations)]]
        if result.error is not None:
            row.append(["error"])
            row += [[""] for _ in range(num_genotypes)]
            row.append([""])
        else:
            row.append(["yes" if result.converged else "no"])
            row += [[f"{x:.{precision}f}"] for x in result.frequencies]
            D = result.linkage_disequilibrium
            row.append(["" if D is None else f"{D:.{precision}f}"])
        data.append(row)
    alignments = ["<", ">", "^"] + [">"] * (num_genotypes + 1)
    return core.text_table("Final genotype frequencies", titles, alignments, data)


def run_simulate(args, parser):
    num_genotypes = 1 << args.num_loci
    fitness = args.fitness
    if fitness is not None and len(fitness) != num_genotypes:
        parser.error(f"Must specify {num_genotypes} fitness values")
    mating_rule = get_mating_rule(args, parser)
    try:
        results = simulations.sim_trials(
            args.num_loci,
            get_recombination_map(args),
            fitness=fitness,
            mating_rule=mating_rule,
            num_trials=args.num_trials,
            initial_frequencies=args.initial,
            tolerance=args.tolerance,
            max_generations=args.max_generations,
            random_seed=args.random_seed,
            skip_failed=True,
            num_threads=args.num_threads,
        )
    except ValueError as e:
        parser.error(str(e))
    print(format_results(results, args.precision), end="")


def run_table(args, parser):
    try:
        table = recombination.build_table(
            args.num_loci,
            get_recombination_map(args),
            num_threads=args.num_threads,
        )
    except ValueError as e:
        parser.error(str(e))
    table.dump(args.output)
    logging.getLogger(__name__).info(
        "Wrote table with %d entries to %s", table.num_entries, args.output
    )


def add_simulate_subcommand(subparsers):
    parser = subparsers.add_parser(
        "simulate", help="Iterate genotype frequencies to equilibrium."
    )
    add_num_loci_argument(parser)
    add_recombination_argument(parser)
    parser.add_argument(
        "--fitness",
        "-w",
        type=float,
        nargs="+",
        default=None,
        help="The fitness of each of the 2^num_loci genotypes. Defaults to 1.",
    )
    parser.add_argument(
        "--mating",
        "-m",
        choices=["random", "assortative"],
        default="random",
        help="The mating rule",
    )
    parser.add_argument(
        "--distortion",
        type=unit_float,
        default=None,
        help="The weight given to unlike pairs under assortative mating",
    )
    parser.add_argument(
        "--num-trials",
        "-T",
        type=positive_int,
        default=None,
        help="The number of trials. Defaults to the number of genotypes.",
    )
    parser.add_argument(
        "--initial",
        choices=["corners", "random"],
        default="corners",
        help=(
            "How initial frequencies are chosen: 'corners' starts the first "
            "trials fixed for each genotype, 'random' draws allele frequencies."
        ),
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=simulations.DEFAULT_TOLERANCE,
        help="The convergence tolerance on the change in frequencies",
    )
    parser.add_argument(
        "--max-generations",
        "-G",
        type=positive_int,
        default=simulations.DEFAULT_MAX_GENERATIONS,
        help="The maximum number of generations in each trial",
    )
    add_random_seed_argument(parser)
    add_precision_argument(parser)
    add_threads_argument(parser)
    parser.set_defaults(runner=run_simulate)


def add_table_subcommand(subparsers):
    parser = subparsers.add_parser(
        "table", help="Build a recombination table and write it to a file."
    )
    add_num_loci_argument(parser)
    add_recombination_argument(parser)
    add_threads_argument(parser)
    parser.add_argument("output", help="The HDF5 file to write the table to")
    parser.set_defaults(runner=run_table)


def get_haploid_parser():
    top_parser = argparse.ArgumentParser(
        description="Command line interface for haploid."
    )
    top_parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {haploid.__version__}"
    )
    top_parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase output verbosity"
    )
    top_parser.add_argument(
        "-l",
        "--log-level",
        type=int,
        default=logging.WARNING,
        help="Set log-level to the specified value",
    )
    subparsers = top_parser.add_subparsers(dest="subcommand")
    subparsers.required = True

    add_simulate_subcommand(subparsers)
    add_table_subcommand(subparsers)

    return top_parser


def haploid_main(arg_list=None):
    set_sigpipe_handler()
    parser = get_haploid_parser()
    args = parser.parse_args(arg_list)
    setup_logging(args)
    args.runner(args, parser)
