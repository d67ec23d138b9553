#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   io.py

Readers for the raw inputs of a study: the dense methylation matrix, the probe
and sample identifier arrays, the metadata table and the probe-set files.
"""
import logging
import os
from typing import List, Optional, Set

import numpy as np
import pandas as pd

from methylAge.exceptions import AlignmentError, ProbeSetReadError

LOGGER = logging.getLogger(__name__)

_TEXT_SUFFIXES = {'.csv': ',', '.tsv': '\t', '.txt': None}

def _suffix(path: str) -> str:
    return os.path.splitext(str(path))[1].lower()

def load_dense_array(path: str) -> np.ndarray:
    """Load a dense 2-D numeric array as float64.

    `.npy` files are read with `np.load`, `.csv`, `.tsv` and `.txt` files with `np.loadtxt`.
    """
    suffix = _suffix(path)
    if suffix == '.npy':
        matrix = np.load(path, allow_pickle=False)
    elif suffix in _TEXT_SUFFIXES:
        matrix = np.loadtxt(path, delimiter=_TEXT_SUFFIXES[suffix], dtype=np.float64, ndmin=2)
    else:
        raise ValueError(f'unsupported array format `{suffix}` for {path}')

    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError(f'expected a 2-D array in {path}, got {matrix.ndim} dimensions')
    LOGGER.debug('loaded %s array from %s', matrix.shape, path)
    return matrix

def load_string_array(path: str) -> List[str]:
    """Load a 1-D array of identifiers.

    `.npy` string arrays are read with `np.load`; any other file is read as
    newline-delimited text with blank lines ignored.
    """
    if _suffix(path) == '.npy':
        values = np.load(path, allow_pickle=True).reshape(-1)
        return [v.decode('utf-8') if isinstance(v, bytes) else str(v) for v in values]

    with open(path, 'r') as f:
        return [line.rstrip('\r\n') for line in f if line.strip()]

def load_metadata(path: str, sample_column: str = 'sample_id') -> pd.DataFrame:
    """Read the metadata table (csv or tsv by suffix). Sample ids are kept as strings."""
    sep = '\t' if _suffix(path) in ('.tsv', '.txt') else ','
    metadata = pd.read_csv(path, sep=sep, dtype={sample_column: str})
    if sample_column not in metadata.columns:
        raise AlignmentError(f'metadata {path} has no `{sample_column}` column')
    return metadata

def read_probe_set(path: Optional[str]) -> Optional[Set[str]]:
    """Read a newline-delimited probe-set file.

    Blank lines and lines starting with `#` are ignored. `None` means all probes.
    """
    if path is None:
        return None

    probes = set()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                probe = line.strip()
                if probe and not probe.startswith('#'):
                    probes.add(probe)
    except UnicodeDecodeError as e:
        raise ProbeSetReadError(f'probe set file {path} is not valid UTF-8: {e}') from e
    return probes

def orient_matrix(matrix: np.ndarray,
                  n_probes: int,
                  n_samples: int,
                  orientation: str = 'auto') -> np.ndarray:
    """Return `matrix` as samples x probes.

    Parameters
    ----------
    matrix : np.ndarray
        The raw dense matrix.
    n_probes : int
        Length of the probe identifier array.
    n_samples : int
        Length of the sample identifier array.
    orientation : str
        `auto`, `samples_x_probes` or `probes_x_samples`.

    Returns
    -------
    np.ndarray
        The matrix with one row per sample.
    """
    as_is = matrix.shape == (n_samples, n_probes)
    transposed = matrix.shape == (n_probes, n_samples)

    if orientation == 'samples_x_probes' and as_is:
        return matrix
    if orientation == 'probes_x_samples' and transposed:
        return matrix.T
    if orientation == 'auto':
        if as_is and transposed:
            raise AlignmentError(f'cannot infer orientation of a square {matrix.shape} matrix, '
                                 'set `orientation` in the data configuration')
        if as_is:
            return matrix
        if transposed:
            return matrix.T

    raise AlignmentError(f'matrix of shape {matrix.shape} does not match {n_samples} sample ids '
                         f'and {n_probes} probe ids (orientation `{orientation}`)')
