"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-FileCopyrightText: 2024 Basil Kraft
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File: metrics.py

Calculate agreement metrics between observed and predicted ages.

Metrics implemented:
* mean absolute error          > mae
* root mean squared error      > rmse
* coefficient of determination > r2
* pearson correlation          > pearson_r
* concordance correlation      > ccc

Only pairs where both values are finite are used to calculate metrics.

"""

import numpy as np
import warnings
from typing import Dict, Iterable
from sklearn.metrics import mean_absolute_error, r2_score

def _valid_pairs(obs, mod):
    obs = np.asarray(obs, dtype=np.float64).reshape(-1)
    mod = np.asarray(mod, dtype=np.float64).reshape(-1)
    if obs.shape != mod.shape:
        raise ValueError(f'obs and mod must have the same length, got {obs.shape[0]} and {mod.shape[0]}')
    valid_values = np.isfinite(obs) & np.isfinite(mod)
    return obs[valid_values], mod[valid_values]

def mae(obs, mod):
    obs, mod = _valid_pairs(obs, mod)
    if obs.size == 0:
        return np.nan
    return float(mean_absolute_error(obs, mod))

def rmse(obs, mod):
    obs, mod = _valid_pairs(obs, mod)
    if obs.size == 0:
        return np.nan
    return float(np.sqrt(np.mean(np.power(mod - obs, 2))))

def r2(obs, mod):
    obs, mod = _valid_pairs(obs, mod)
    if obs.size < 2:
        return np.nan
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return float(r2_score(obs, mod))

def pearson_r(obs, mod):
    obs, mod = _valid_pairs(obs, mod)
    if obs.size < 2:
        return np.nan

    obs = obs - obs.mean()
    mod = mod - mod.mean()
    std_xy = np.sqrt(np.sum(obs * obs) * np.sum(mod * mod))
    if std_xy == 0:
        return np.nan
    return float(np.sum(obs * mod) / std_xy)

def ccc(obs, mod):
    """Lin's concordance correlation coefficient.

    ccc = 2 cov(obs, mod) / (var(obs) + var(mod) + (mean(obs) - mean(mod))^2),
    with population (ddof=0) moments.
    """
    obs, mod = _valid_pairs(obs, mod)
    if obs.size < 2:
        return np.nan

    mean_obs, mean_mod = obs.mean(), mod.mean()
    cov = np.mean((obs - mean_obs) * (mod - mean_mod))
    denominator = obs.var() + mod.var() + (mean_obs - mean_mod) ** 2
    if denominator == 0:
        return np.nan
    return float(2.0 * cov / denominator)

FUN_LOOKUP = {
    'mae': mae,
    'rmse': rmse,
    'r2': r2,
    'pearson_r': pearson_r,
    'ccc': ccc
}

def get_metrics(obs, mod, funs: Iterable[str] = ('mae', 'r2', 'ccc')) -> Dict[str, float]:
    """Calculate multiple metrics and combine them into a single dictionary.

    Parameters
    ----------
    obs: array-like
        The observed ages.
    mod: array-like
        The predicted ages.
    funs: Iterable[str]
        An iterable of function names (see `metrics implemented`).

    Returns
    ----------
    dict
        Metric name to value, in the requested order.

    """
    options_str = ", ".join(FUN_LOOKUP.keys())

    metrics = {}
    for fun_str in funs:
        if fun_str not in FUN_LOOKUP:
            raise ValueError(
                f'Function `{fun_str}` not one of the implemented function: [{options_str}].'
            )
        metrics[fun_str] = FUN_LOOKUP[fun_str](obs, mod)

    return metrics
