#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
@author: sbesnard
@File    :   experiment.py
@Time    :   Mon Sep 26 10:47:17 2022
@Author  :   Simon Besnard
@Version :   1.0
@Contact :   besnard@gfz-potsdam.de
@License :   (C)Copyright 2022-2023, GFZ-Potsdam
@Desc    :   One isolated probe-set experiment: filter, split, scale, train, evaluate
"""
import logging
import os
from typing import Optional, Set

import numpy as np
import xarray as xr

from methylAge.config import ProbeSet, StudyConfig, safe_name
from methylAge.core.results import ExperimentResult
from methylAge.dataloaders.alignment import filter_probes
from methylAge.dataloaders.splitter import split_indices
from methylAge.exceptions import CheckpointIOError
from methylAge.methods.MLP import MLPmethod

LOGGER = logging.getLogger(__name__)

class Experiment:
    """Experiment class running the full pipeline for a single probe set.

    Every experiment draws its own split, fits its own scaler and trains a fresh
    model with a fresh optimizer and scheduler. The only state it shares with
    other experiments is the read-only aligned input matrix.

    Directory structure
    -------------------
    * checkpoint: <study_dir>/checkpoints/<probe_set>/best_model.pt
    * results:    <study_dir>/experiments/<probe_set>.nc

    Parameters
    ----------
    probe_set : ProbeSet
        The probe set configuration.
    probes : set of str, optional
        Probe ids of the probe set, `None` for all probes.
    data : xr.DataArray
        Aligned `(sample, probe)` matrix with a `label` coordinate.
    config : StudyConfig
        The study configuration.
    study_dir : str
        The study directory.
    """
    def __init__(
            self,
            probe_set: ProbeSet,
            probes: Optional[Set[str]],
            data: xr.DataArray,
            config: StudyConfig,
            study_dir: str):

        self.probe_set = probe_set
        self.probes = probes
        self.data = data
        self.config = config
        self.study_dir = study_dir
        self.stage = 'pending'
        self.n_features = None

    @staticmethod
    def create_and_get_path(*loc, exist_ok=True, is_file_path=False):
        if len(loc) > 0:
            path = os.path.join(*loc)
        else:
            path = ''

        if is_file_path:
            create_path = os.path.dirname(path)
        else:
            create_path = path

        if not os.path.exists(create_path):
            os.makedirs(create_path, exist_ok=exist_ok)
        return path

    @property
    def tune_dir(self):
        return self.create_and_get_path(self.study_dir, 'checkpoints', safe_name(self.probe_set.name))

    @property
    def result_path(self):
        return self.create_and_get_path(self.study_dir, 'experiments', safe_name(self.probe_set.name) + '.nc',
                                        is_file_path=True)

    def run(self) -> ExperimentResult:
        """Run filter, split, train and evaluate for the probe set.

        Returns
        -------
        ExperimentResult
            Evaluation metrics are `nan` and `error` is set if the checkpoint
            could not be written or read; the training history is kept.
        """
        self.stage = 'filter'
        data = filter_probes(self.data, self.probes)
        self.n_features = data.sizes['probe']

        self.stage = 'split'
        split = split_indices(data.sizes['sample'], self.config.split.proportions, seed=self.config.split.seed)
        LOGGER.info('[%s] %d probes, %d samples split into train=%d valid=%d test=%d',
                    self.probe_set.name, self.n_features, data.sizes['sample'], *split.sizes)

        self.stage = 'train'
        ml_method = MLPmethod(tune_dir=self.tune_dir,
                              training=self.config.training,
                              seed=self.config.split.seed)
        try:
            outcome = ml_method.train(data, split)
        except CheckpointIOError as e:
            LOGGER.error('[%s] %s', self.probe_set.name, e)
            trainer = ml_method.trainer
            return self._result(data, split, trainer.history, len(trainer.history), trainer.best_epoch,
                                'checkpoint_failed', error=str(e))

        self.stage = 'evaluate'
        try:
            evaluation = ml_method.evaluate()
        except CheckpointIOError as e:
            LOGGER.error('[%s] %s', self.probe_set.name, e)
            return self._result(data, split, outcome.history, outcome.epochs_ran, outcome.best_epoch,
                                outcome.state.value, error=str(e))

        result = self._result(data, split, outcome.history, outcome.epochs_ran, outcome.best_epoch,
                              outcome.state.value, evaluation=evaluation)
        self.stage = 'done'
        LOGGER.info('[%s] test MAE=%.3f R2=%.3f CCC=%.3f', self.probe_set.name, result.mae, result.r2, result.ccc)
        return result

    def _result(self, data, split, history, epochs_ran, best_epoch, stop_reason,
                evaluation: Optional[dict] = None, error: Optional[str] = None) -> ExperimentResult:
        metrics = evaluation['metrics'] if evaluation is not None else {}
        extra = {}
        if evaluation is not None:
            extra = {'actual': evaluation['actual'],
                     'predicted': evaluation['predicted'],
                     'sample': evaluation['sample']}

        return ExperimentResult(probe_set=self.probe_set.name,
                                n_features=data.sizes['probe'],
                                n_samples=data.sizes['sample'],
                                split_sizes=split.sizes,
                                mae=metrics.get('mae', np.nan),
                                r2=metrics.get('r2', np.nan),
                                ccc=metrics.get('ccc', np.nan),
                                rmse=metrics.get('rmse', np.nan),
                                pearson_r=metrics.get('pearson_r', np.nan),
                                epochs_ran=epochs_ran,
                                best_epoch=best_epoch,
                                stop_reason=stop_reason,
                                history=history,
                                error=error,
                                **extra)

    def save(self, result: ExperimentResult) -> str:
        """Write history and test predictions to `<study_dir>/experiments/<probe_set>.nc`."""
        path = self.result_path
        result.to_dataset().to_netcdf(path, mode='w')
        return path
