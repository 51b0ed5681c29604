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
Common provenance methods used to determine the state and versions
of various dependencies and the OS.
"""
import json
import logging
import platform

import numpy

from haploid import core

__version__ = core.__version__

logger = logging.getLogger(__name__)


def get_provenance_dict(parameters=None):
    """
    Returns a dictionary encoding an execution of haploid.
    """
    document = {
        "schema_version": "1.0.0",
        "software": {"name": "haploid", "version": __version__},
        "parameters": parameters,
        "environment": get_environment(),
    }
    return document


def _get_environment():
    # Imported here as h5py is only needed when we read and write files.
    import h5py

    return {
        "os": {
            "system": platform.system(),
            "node": platform.node(),
            "release": platform.release(),
            "version": platform.version(),
            "machine": platform.machine(),
        },
        "python": {
            "implementation": platform.python_implementation(),
            "version": platform.python_version(),
        },
        "libraries": {
            "numpy": {"version": numpy.__version__},
            "h5py": {"version": h5py.__version__},
        },
    }


_environment = None


def get_environment():
    """
    Returns a dictionary describing the environment in which haploid
    is currently running.
    """
    # Everything here is fixed so we cache it
    global _environment
    if _environment is None:
        _environment = _get_environment()
    return _environment


class ProvenanceEncoder(json.JSONEncoder):
    """
    Extension of the `json` encoder that serializes numpy values and
    objects providing an ``asdict`` method.
    """

    def default(self, obj):
        if isinstance(obj, numpy.ndarray):
            return obj.tolist()
        if isinstance(obj, numpy.integer):
            return int(obj)
        if isinstance(obj, numpy.floating):
            return float(obj)
        if hasattr(obj, "asdict"):
            return {"__class__": type(obj).__name__, **obj.asdict()}
        return super().default(obj)


def json_encode_provenance(provenance_dict):
    """
    Return a JSON representation of the provenance
    """
    return ProvenanceEncoder().encode(provenance_dict)


def parse_provenance(encoded):
    """
    Decodes the specified JSON provenance record, returning the parameters
    dictionary. Malformed records are logged and an empty dictionary is
    returned.
    """
    try:
        document = json.loads(encoded)
    except ValueError:
        logger.warning("Failed to decode provenance record")
        return {}
    if not isinstance(document, dict):
        logger.warning("Provenance record is not a JSON object")
        return {}
    if document.get("software", {}).get("name") != "haploid":
        logger.warning("Provenance record was not written by haploid")
        return {}
    return document.get("parameters") or {}
