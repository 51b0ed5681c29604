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
Exceptions defined in haploid.
"""


class HaploidException(Exception):
    """
    Superclass of all exceptions thrown.
    """


class InvalidLocusError(HaploidException, ValueError):
    """
    A locus index outside the range of loci of the genotype space.
    """


class InvalidRecombinationFractionError(HaploidException, ValueError):
    """
    A recombination fraction that is NaN or lies outside [0, 1].
    """


class InvalidValueError(HaploidException, ValueError):
    """
    A sparse matrix entry that is NaN or lies outside [0, 1].
    """


class DegenerateFitnessError(HaploidException):
    """
    The population mean fitness is zero, negative or NaN, so selection
    cannot be applied.
    """


class NormalizationFailureError(HaploidException):
    """
    A frequency vector or mating table collapsed to zero or NaN and
    cannot be normalised.
    """


class AllocationFailureError(HaploidException, MemoryError):
    """
    Storage for a recombination table or mating table could not be
    allocated.
    """


class FileFormatError(HaploidException):
    """
    Some file format error was detected.
    """


class VersionTooNewError(FileFormatError):
    """
    The version of the file is too new and cannot be read by the library.
    """


class VersionTooOldError(FileFormatError):
    """
    The version of the file is too old and cannot be read by the library.
    """
