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
Module responsible for reading and writing recombination tables in HDF5
format.

The file stores the number of loci and the recombination fractions as
attributes and datasets of the root group, along with a JSON provenance
record. The non-zero entries of the table are stored in the ``entries``
group as four parallel datasets: ``target``, ``mom``, ``dad`` and
``value``, sorted by ``target``.
"""
import logging

import h5py
import numpy as np

from haploid import exceptions
from haploid import intervals
from haploid import provenance
from haploid import recombination
from haploid import sparse

logger = logging.getLogger(__name__)

FORMAT_NAME = "haploid-recombination-table"
FORMAT_VERSION = (1, 0)


def _dump_hdf5_v1(table, root):
    root.attrs["format_name"] = FORMAT_NAME
    root.attrs["format_version"] = FORMAT_VERSION
    root.attrs["num_loci"] = table.num_loci
    parameters = {
        "command": "build_table",
        "num_loci": table.num_loci,
        "recombination_map": table.recombination_map,
    }
    root.attrs["provenance"] = provenance.json_encode_provenance(
        provenance.get_provenance_dict(parameters)
    )
    fractions = table.recombination_map.fractions
    root.create_dataset(
        "recombination_fractions", (len(fractions),), data=fractions, dtype=float
    )
    target, mom, dad, value = table.coo_arrays()
    length = len(value)
    entries = root.create_group("entries")
    entries.create_dataset("target", (length,), data=target, dtype="u4")
    entries.create_dataset("mom", (length,), data=mom, dtype="u4")
    entries.create_dataset("dad", (length,), data=dad, dtype="u4")
    entries.create_dataset("value", (length,), data=value, dtype=float)


def _load_hdf5_v1(root):
    num_loci = int(root.attrs["num_loci"])
    rmap = intervals.RecombinationMap(
        fractions=np.array(root["recombination_fractions"]), num_loci=num_loci
    )
    entries = root["entries"]
    target = np.array(entries["target"], dtype=np.int64)
    mom = np.array(entries["mom"], dtype=np.int64)
    dad = np.array(entries["dad"], dtype=np.int64)
    value = np.array(entries["value"], dtype=float)
    if not len(target) == len(mom) == len(dad) == len(value):
        raise exceptions.FileFormatError("Entry datasets must have equal lengths")
    num_genotypes = 1 << num_loci
    if len(target) > 0 and (target.min() < 0 or target.max() >= num_genotypes):
        raise exceptions.FileFormatError("Target genotype out of bounds")
    order = np.argsort(target, kind="stable")
    target, mom, dad, value = target[order], mom[order], dad[order], value[order]
    bounds = np.searchsorted(target, np.arange(num_genotypes + 1))
    matrices = []
    try:
        for k in range(num_genotypes):
            start, end = bounds[k], bounds[k + 1]
            matrices.append(
                sparse.SparseMatrix.from_arrays(
                    num_genotypes, mom[start:end], dad[start:end], value[start:end]
                )
            )
    except (IndexError, ValueError) as e:
        raise exceptions.FileFormatError(f"Malformed table entries: {e}") from e
    parameters = provenance.parse_provenance(str(root.attrs.get("provenance", "")))
    logger.debug("Loaded table with provenance parameters %s", parameters)
    return recombination.RecombinationTable(rmap, matrices)


def dump_table(table, filename):
    """
    Writes the specified recombination table to the specified HDF5 file.
    """
    with h5py.File(filename, "w") as root:
        _dump_hdf5_v1(table, root)


def load_table(filename):
    """
    Reads a recombination table from the specified HDF5 file.

    :raises FileFormatError: if the file is not a haploid table file.
    :raises VersionTooNewError: if the file was written by a newer version.
    :raises VersionTooOldError: if the file was written by an older version.
    """
    loaders = {
        1: _load_hdf5_v1,
    }
    try:
        root = h5py.File(filename, "r")
    except OSError as e:
        raise exceptions.FileFormatError(f"Cannot read HDF5 file: {e}") from e
    try:
        if root.attrs.get("format_name", None) != FORMAT_NAME:
            raise exceptions.FileFormatError("HDF5 file not in haploid format")
        format_version = tuple(root.attrs["format_version"])
        major = int(format_version[0])
        if major > FORMAT_VERSION[0]:
            raise exceptions.VersionTooNewError(
                f"Format version {format_version} is newer than {FORMAT_VERSION}"
            )
        if major not in loaders:
            raise exceptions.VersionTooOldError(
                f"Format version {format_version} is no longer supported"
            )
        try:
            table = loaders[major](root)
        except KeyError as e:
            raise exceptions.FileFormatError(f"Missing table data: {e}") from e
    finally:
        root.close()
    return table
