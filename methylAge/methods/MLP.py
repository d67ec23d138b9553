#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
@author: sbesnard
@File    :   MLP.py
@Time    :   Mon Sep 26 10:47:17 2022
@Author  :   Simon Besnard
@Version :   1.0
@Contact :   besnard.sim@gmail.com
@License :   (C)Copyright 2022-2023, GFZ-Potsdam
@Desc    :   A method class for training and evaluating the MLP age regressor
"""
import logging
import os
import pickle
from typing import Sequence

import numpy as np
import torch
from torch import nn
import xarray as xr

from methylAge.config import TrainingConfig
from methylAge.dataloaders.base import MLData
from methylAge.dataloaders.ml_dataloader import MLDataModule
from methylAge.dataloaders.splitter import SplitIndices
from methylAge.exceptions import CheckpointIOError
from methylAge.methods.trainer import Trainer, TrainingOutcome
from methylAge.utils.metrics import get_metrics
from methylAge.utils.utilities import resolve_device, set_seed

LOGGER = logging.getLogger(__name__)

METRICS = ('mae', 'r2', 'ccc', 'rmse', 'pearson_r')

class MLPRegressor(nn.Module):
    """Feed-forward age regressor: `Linear -> ReLU -> Dropout` per hidden layer and a scalar output."""

    def __init__(self,
                 n_features: int,
                 hidden_dims: Sequence[int] = (512, 256, 128),
                 dropout: float = 0.2) -> None:
        super().__init__()

        layers = []
        dims = (n_features,) + tuple(hidden_dims)
        for i in range(len(dims) - 1):
            layers.append(nn.Linear(dims[i], dims[i + 1]))
            layers.append(nn.ReLU())
            if dropout > 0:
                layers.append(nn.Dropout(dropout))
        layers.append(nn.Linear(dims[-1], 1))
        self.net = nn.Sequential(*layers)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.net(x).squeeze(-1)

class MLPmethod:
    """A method class for training and evaluating the MLP age regressor.

    Parameters
    ----------
    tune_dir : str
        Directory holding the best-model checkpoint of this experiment.
    training : TrainingConfig
        The training schedule.
    seed : int, default is 42
        Seed of the weight initialisation and of the training shuffle.
    """

    def __init__(self,
                 tune_dir: str,
                 training: TrainingConfig = TrainingConfig(),
                 seed: int = 42) -> None:

        self.tune_dir = tune_dir

        if not os.path.exists(tune_dir):
            os.makedirs(tune_dir)

        self.training = training
        self.seed = seed
        self.device = resolve_device(training.device)
        self.checkpoint_path = os.path.join(tune_dir, 'best_model.pt')
        self.mldata = None
        self.trainer = None

    def get_datamodule(self,
                       data: xr.DataArray,
                       split: SplitIndices) -> MLDataModule:
        """Returns the data module for training the model.

        Parameters:
            data: xr.DataArray
                Aligned and probe-filtered `(sample, probe)` matrix with a `label` coordinate.
            split: SplitIndices
                The train, valid and test rows.

        Returns:
            mlData: MLDataModule
                The data module for training the model.
        """
        return MLDataModule(data,
                            split,
                            batch_size=self.training.batch_size,
                            num_workers=self.training.num_workers,
                            seed=self.seed)

    def build_model(self, n_features: int) -> MLPRegressor:
        return MLPRegressor(n_features,
                            hidden_dims=self.training.hidden_dims,
                            dropout=self.training.dropout)

    def train(self,
              data: xr.DataArray,
              split: SplitIndices) -> TrainingOutcome:
        """Trains a fresh MLP on the train rows, monitoring the valid rows.

        Parameters:
            data: xr.DataArray
                Aligned and probe-filtered `(sample, probe)` matrix.
            split: SplitIndices
                The train, valid and test rows.

        Returns:
            TrainingOutcome
                Stop reason, epochs ran, best epoch and training history.
        """
        self.mldata = self.get_datamodule(data, split)

        set_seed(self.seed)
        model = self.build_model(self.mldata.n_features)
        self.trainer = Trainer.from_config(model, self.checkpoint_path, self.training, self.device)

        return self.trainer.fit(self.mldata.train_dataloader(), self.mldata.val_dataloader())

    def load_best_model(self) -> MLPRegressor:
        """Load the persisted best checkpoint into a fresh model instance."""
        try:
            checkpoint = torch.load(self.checkpoint_path, map_location=self.device, weights_only=True)
            model = self.build_model(self.mldata.n_features)
            model.load_state_dict(checkpoint['model_state_dict'])
        except (OSError, RuntimeError, KeyError, EOFError, pickle.UnpicklingError) as e:
            raise CheckpointIOError(f'could not read checkpoint {self.checkpoint_path}: {e}') from e

        LOGGER.debug('loaded checkpoint of epoch %s from %s', checkpoint.get('epoch'), self.checkpoint_path)
        return model.to(self.device)

    def predict(self,
                model: nn.Module,
                ml_data: MLData) -> np.ndarray:
        """Predict ages of `ml_data` in partition order. Negative predictions are clamped to 0."""
        model.eval()
        predictions = []
        with torch.no_grad():
            for features, _ in ml_data.loader():
                predictions.append(model(features.to(self.device)).cpu().numpy())

        if not predictions:
            return np.empty(0, dtype=np.float64)
        return np.clip(np.concatenate(predictions).astype(np.float64), 0, None)

    def evaluate(self) -> dict:
        """Evaluate the best checkpoint on the test partition.

        Returns
        -------
        dict
            `actual`, `predicted`, `sample` arrays and the test metrics.
        """
        if self.mldata is None:
            raise RuntimeError('`train` must be called before `evaluate`')

        model = self.load_best_model()
        test_data = self.mldata.test_dataloader()
        y_hat = self.predict(model, test_data)
        y_obs = test_data.target

        return {'actual': y_obs,
                'predicted': y_hat,
                'sample': self.mldata.sample_ids('test'),
                'metrics': get_metrics(y_obs, y_hat, METRICS)}
