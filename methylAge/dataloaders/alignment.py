#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   alignment.py

This module joins the methylation matrix with the sample metadata and restricts
its columns to a probe set.

Example usage:
--------------
from methylAge.dataloaders.alignment import align_samples, filter_probes

data = align_samples(matrix, sample_ids, probe_ids, metadata)
data = filter_probes(data, probe_set={'cg00000029', 'cg00000108'})
X, y = data.values, data['label'].values
"""
import logging
from typing import Optional, Sequence, Set

import numpy as np
import pandas as pd
import xarray as xr

from methylAge.exceptions import AlignmentError, DegenerateFeatureError

LOGGER = logging.getLogger(__name__)

def normalize_sample_id(sample_id) -> str:
    """Case- and whitespace-insensitive key of a sample id."""
    return str(sample_id).strip().casefold()

def _duplicated(keys: Sequence[str]) -> list:
    return sorted(pd.Index(keys)[pd.Index(keys).duplicated()].unique())

def align_samples(matrix: np.ndarray,
                  sample_ids: Sequence[str],
                  probe_ids: Sequence[str],
                  metadata: pd.DataFrame,
                  sample_column: str = 'sample_id',
                  label_column: str = 'age') -> xr.DataArray:
    """Join matrix rows with their metadata label.

    Rows whose sample id has no metadata match, or whose label is missing or not
    numeric, are dropped. The remaining rows keep the order of the feature matrix.

    Parameters
    ----------
    matrix : np.ndarray
        Samples x probes matrix.
    sample_ids : Sequence[str]
        Sample identifiers, parallel to the matrix rows.
    probe_ids : Sequence[str]
        Probe identifiers, parallel to the matrix columns.
    metadata : pd.DataFrame
        Table keyed by `sample_column` with a numeric `label_column`.
    sample_column : str
        Name of the sample id column in `metadata`.
    label_column : str
        Name of the label column in `metadata`.

    Returns
    -------
    xr.DataArray
        Dims `('sample', 'probe')`, with the label as a `label` coordinate along `sample`.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape != (len(sample_ids), len(probe_ids)):
        raise AlignmentError(f'matrix of shape {matrix.shape} does not match {len(sample_ids)} sample ids '
                             f'and {len(probe_ids)} probe ids')
    for column in (sample_column, label_column):
        if column not in metadata.columns:
            raise AlignmentError(f'metadata has no `{column}` column')

    keys = [normalize_sample_id(s) for s in sample_ids]
    duplicated = _duplicated(keys)
    if duplicated:
        raise AlignmentError(f'sample ids are not unique after normalisation: {duplicated[:10]}')

    metadata = metadata.dropna(subset=[sample_column])
    meta_keys = [normalize_sample_id(s) for s in metadata[sample_column]]
    duplicated = _duplicated(meta_keys)
    if duplicated:
        raise AlignmentError(f'metadata sample ids are not unique after normalisation: {duplicated[:10]}')

    labels = pd.Series(pd.to_numeric(metadata[label_column], errors='coerce').to_numpy(dtype=np.float64),
                       index=meta_keys)
    matched = labels.reindex(keys).to_numpy(dtype=np.float64)
    keep = np.isfinite(matched)

    n_unmatched = int(np.sum(~pd.Index(keys).isin(labels.index)))
    LOGGER.info('aligned %d of %d samples (%d without metadata, %d without label)',
                int(keep.sum()), len(keys), n_unmatched, int((~keep).sum()) - n_unmatched)

    if not keep.any():
        raise AlignmentError('no sample of the feature matrix matches a labelled metadata row')

    return xr.DataArray(matrix[keep, :],
                        dims=('sample', 'probe'),
                        coords={'sample': np.asarray(sample_ids, dtype=str)[keep],
                                'probe': np.asarray(probe_ids, dtype=str),
                                'label': ('sample', matched[keep])},
                        name='beta')

def filter_probes(data: xr.DataArray,
                  probe_set: Optional[Set[str]] = None) -> xr.DataArray:
    """Keep the columns whose probe id is in `probe_set`, preserving column order.

    `None` selects all probes. The row set is never changed.
    """
    if probe_set is None:
        return data

    mask = np.isin(data['probe'].values, np.asarray(sorted(probe_set), dtype=str))
    if not mask.any():
        raise DegenerateFeatureError(f'none of the {len(probe_set)} probes of the probe set '
                                     'is present in the feature matrix')

    LOGGER.info('probe set keeps %d of %d probes (%d listed)', int(mask.sum()), mask.size, len(probe_set))
    return data.isel(probe=mask)
