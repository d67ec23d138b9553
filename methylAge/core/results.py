#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   results.py

Per-experiment results and the comparison table of a probe-set study.
"""
import math
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd
import xarray as xr

from methylAge.methods.trainer import TrainingHistory

SUMMARY_COLUMNS = ['probe_set', 'status', 'n_features', 'n_samples', 'mae', 'r2', 'ccc', 'rmse',
                   'pearson_r', 'epochs_ran', 'best_epoch', 'stop_reason', 'error']

@dataclass(frozen=True)
class ExperimentResult:
    """Outcome of one probe-set experiment that reached the end of training.

    Metrics are `nan` and `error` is set when the best checkpoint could not be
    written or read back for evaluation.
    """
    probe_set: str
    n_features: int
    n_samples: int
    split_sizes: Tuple[int, int, int]
    mae: float
    r2: float
    ccc: float
    rmse: float
    pearson_r: float
    epochs_ran: int
    best_epoch: Optional[int]
    stop_reason: str
    history: TrainingHistory
    actual: np.ndarray = field(default_factory=lambda: np.empty(0))
    predicted: np.ndarray = field(default_factory=lambda: np.empty(0))
    sample: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=str))
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return 'ok' if self.error is None else 'evaluation_failed'

    @property
    def test_predictions(self) -> pd.DataFrame:
        return pd.DataFrame({'sample': self.sample, 'actual': self.actual, 'predicted': self.predicted})

    def to_row(self) -> dict:
        return {'probe_set': self.probe_set,
                'status': self.status,
                'n_features': self.n_features,
                'n_samples': self.n_samples,
                'mae': self.mae,
                'r2': self.r2,
                'ccc': self.ccc,
                'rmse': self.rmse,
                'pearson_r': self.pearson_r,
                'epochs_ran': self.epochs_ran,
                'best_epoch': self.best_epoch,
                'stop_reason': self.stop_reason,
                'error': self.error}

    def to_dataset(self) -> xr.Dataset:
        """Training history along `epoch` and test predictions along `sample`.

        Predictions are left out when the experiment could not be evaluated.
        """
        history = self.history.to_dataframe()
        ds = xr.Dataset(
            {'train_loss': ('epoch', history['train_loss'].to_numpy()),
             'val_loss': ('epoch', history['val_loss'].to_numpy()),
             'val_mae': ('epoch', history['val_mae'].to_numpy()),
             'learning_rate': ('epoch', history['learning_rate'].to_numpy())},
            coords={'epoch': history['epoch'].to_numpy()})
        if len(self.sample) > 0:
            ds = ds.assign(age_obs=('sample', np.asarray(self.actual, dtype=np.float64)),
                           age_pred=('sample', np.asarray(self.predicted, dtype=np.float64)))
            ds = ds.assign_coords(sample=np.asarray(self.sample, dtype=str))
        ds.attrs.update({k: v for k, v in self.to_row().items() if v is not None})
        return ds

@dataclass(frozen=True)
class ExperimentFailure:
    """A probe-set experiment that could not be completed."""
    probe_set: str
    stage: str
    error_type: str
    message: str
    n_features: Optional[int] = None

    @property
    def status(self) -> str:
        return 'failed'

    def to_row(self) -> dict:
        row = dict.fromkeys(SUMMARY_COLUMNS)
        row.update({'probe_set': self.probe_set,
                    'status': self.status,
                    'n_features': self.n_features,
                    'stop_reason': f'failed during {self.stage}',
                    'error': f'{self.error_type}: {self.message}'})
        return row

class StudyResult:
    """Ordered mapping of probe-set name to its `ExperimentResult` or `ExperimentFailure`.

    Order follows the probe-set configuration, never performance.
    """

    def __init__(self) -> None:
        self.results: 'OrderedDict[str, Union[ExperimentResult, ExperimentFailure]]' = OrderedDict()

    def add(self, entry: Union[ExperimentResult, ExperimentFailure]) -> None:
        if entry.probe_set in self.results:
            raise ValueError(f'probe set `{entry.probe_set}` already has a result')
        self.results[entry.probe_set] = entry

    def __getitem__(self, probe_set: str) -> Union[ExperimentResult, ExperimentFailure]:
        return self.results[probe_set]

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results.values())

    @property
    def failures(self) -> list:
        return [r for r in self.results.values() if isinstance(r, ExperimentFailure)]

    @property
    def best_probe_set(self) -> Optional[str]:
        """Probe set with the minimum test MAE among evaluated experiments."""
        best, best_mae = None, math.inf
        for result in self.results.values():
            if isinstance(result, ExperimentResult) and math.isfinite(result.mae) and result.mae < best_mae:
                best, best_mae = result.probe_set, result.mae
        return best

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame([r.to_row() for r in self.results.values()], columns=SUMMARY_COLUMNS)
