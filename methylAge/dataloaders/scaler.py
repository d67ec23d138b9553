#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   scaler.py

Per-probe standardisation statistics, fitted on the training rows only.
"""
import logging
import warnings
from dataclasses import dataclass

import numpy as np

LOGGER = logging.getLogger(__name__)

MIN_SCALE = 1e-12

@dataclass(frozen=True)
class ScalingStats:
    """Per-column centre and scale. `scale` never contains 0 or non-finite values."""
    mean: np.ndarray
    scale: np.ndarray

    @property
    def n_features(self) -> int:
        return self.mean.shape[0]

def fit_scaling(X_train: np.ndarray) -> ScalingStats:
    """Compute column means and standard deviations ignoring NaNs.

    Columns with zero, near-zero or undefined standard deviation get a unit
    scale so they are only re-centred. Columns without any finite value get a
    zero mean.
    """
    X_train = np.asarray(X_train, dtype=np.float64)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        mean = np.nanmean(X_train, axis=0)
        std = np.nanstd(X_train, axis=0)

    mean = np.where(np.isfinite(mean), mean, 0.0)
    degenerate = ~np.isfinite(std) | (std < MIN_SCALE)
    if degenerate.any():
        LOGGER.debug('%d of %d probes have zero or undefined variance, using unit scale',
                     int(degenerate.sum()), degenerate.size)
    scale = np.where(degenerate, 1.0, std)

    return ScalingStats(mean=mean, scale=scale)

def apply_scaling(X: np.ndarray, stats: ScalingStats) -> np.ndarray:
    """Apply `(X - mean) / scale` column-wise."""
    X = np.asarray(X, dtype=np.float64)
    if X.shape[-1] != stats.n_features:
        raise ValueError(f'expected {stats.n_features} features, got {X.shape[-1]}')
    return (X - stats.mean) / stats.scale
