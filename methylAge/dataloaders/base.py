#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   base.py

This module defines how (features, age) mini-batches of one partition are generated.

Example usage:
--------------
from methylAge.dataloaders.base import MLData

ml_data = MLData(features=X_train, target=y_train, norm_stats=stats, batch_size=32, shuffle=True)
xy_data = ml_data.get_xy()
for features, target in ml_data.loader():
    ...
"""
from math import ceil
from typing import Optional

import numpy as np
import torch
from torch.utils.data import DataLoader, TensorDataset

from methylAge.dataloaders.scaler import ScalingStats, apply_scaling

class MLData:
    """
    A dataset of one partition (train, valid or test).

    Parameters
    ----------
    features : np.ndarray
        Unscaled samples x probes matrix of the partition.
    target : np.ndarray
        Age of each sample.
    norm_stats : ScalingStats
        Scaling statistics fitted on the training partition.
    batch_size : int, optional
        Maximum number of samples per batch. The last batch may be smaller. Default is 32.
    shuffle : bool, optional
        Whether batches are drawn in a fresh random order each epoch. Default is False.
    num_workers : int, optional
        Number of `DataLoader` worker processes. Default is 0.
    seed : int, optional
        Seed of the shuffling generator. Default is None.
    """
    def __init__(self,
                 features: np.ndarray,
                 target: np.ndarray,
                 norm_stats: ScalingStats,
                 batch_size: int = 32,
                 shuffle: bool = False,
                 num_workers: int = 0,
                 seed: Optional[int] = None):

        self.features = np.asarray(features, dtype=np.float64)
        self.target = np.asarray(target, dtype=np.float64)
        self.norm_stats = norm_stats
        self.batch_size = batch_size
        self.shuffle = shuffle
        self.num_workers = num_workers
        self.seed = seed
        self._loader = None

    def __len__(self) -> int:
        return self.target.shape[0]

    @property
    def n_batches(self) -> int:
        return ceil(len(self) / self.batch_size)

    def get_x(self) -> np.ndarray:
        """
        Scale the features with the training statistics.

        Missing values are set to 0 after scaling, i.e. to the training mean of the probe.

        Returns
        -------
        x : np.ndarray
            The scaled features as float32.
        """
        X = apply_scaling(self.features, self.norm_stats)
        return np.nan_to_num(X, nan=0.0, posinf=0.0, neginf=0.0).astype('float32')

    def get_y(self) -> np.ndarray:
        return self.target.astype('float32')

    def get_xy(self) -> dict:
        """
        Get features and target arrays of the partition.

        Returns
        -------
        dict
            A dictionary containing the features and target arrays as well as the normalization statistics.
        """
        return {'features': self.get_x(), 'target': self.get_y(), 'norm_stats': self.norm_stats}

    def loader(self) -> DataLoader:
        """
        Returns the torch `DataLoader` of the partition.

        The loader is built once. A shuffled loader draws a new permutation each
        time it is iterated, from a generator seeded with `seed`.
        """
        if self._loader is None:
            generator = None
            if self.shuffle:
                generator = torch.Generator()
                if self.seed is not None:
                    generator.manual_seed(self.seed)

            dataset = TensorDataset(torch.from_numpy(self.get_x()), torch.from_numpy(self.get_y()))
            self._loader = DataLoader(dataset,
                                      batch_size=self.batch_size,
                                      shuffle=self.shuffle,
                                      drop_last=False,
                                      num_workers=self.num_workers,
                                      generator=generator)
        return self._loader
