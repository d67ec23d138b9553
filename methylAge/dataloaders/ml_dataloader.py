#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   ml_dataloader.py

This module provides functionalities for generating dataloaders for the age regressor.

Example usage:
--------------
from methylAge.dataloaders.ml_dataloader import MLDataModule
from methylAge.dataloaders.splitter import split_indices

split = split_indices(data.sizes['sample'], (0.7, 0.15, 0.15), seed=42)
ml_data_module = MLDataModule(data=data, split=split, batch_size=32, seed=42)

train_loader = ml_data_module.train_dataloader()
valid_loader = ml_data_module.val_dataloader()
test_loader = ml_data_module.test_dataloader()
"""
import xarray as xr

from methylAge.dataloaders.base import MLData
from methylAge.dataloaders.scaler import fit_scaling
from methylAge.dataloaders.splitter import SplitIndices

class MLDataModule:

    """
    Define dataloaders.

    The normalization statistics are computed from the training rows only and
    shared by the three partitions.

    Parameters
    ----------
    data : xr.DataArray
        Aligned `(sample, probe)` matrix with a `label` coordinate along `sample`.
    split : SplitIndices
        Row indices of the train, valid and test partitions.
    batch_size : int, optional
        Maximum batch size. Default is 32.
    num_workers : int, optional
        Number of `DataLoader` worker processes. Default is 0.
    seed : int, optional
        Seed of the training shuffle. Default is 42.
    """

    def __init__(self,
                 data: xr.DataArray,
                 split: SplitIndices,
                 batch_size: int = 32,
                 num_workers: int = 0,
                 seed: int = 42) -> None:

        self.data = data
        self.split = split
        self.batch_size = batch_size
        self.num_workers = num_workers
        self.seed = seed

        self.norm_stats = fit_scaling(self.data.isel(sample=self.split.train).values)

        self._train = self._subset(self.split.train, shuffle=True)
        self._valid = self._subset(self.split.valid, shuffle=False)
        self._test = self._subset(self.split.test, shuffle=False)

    @property
    def n_features(self) -> int:
        return self.data.sizes['probe']

    def _subset(self, index, shuffle: bool) -> MLData:
        subset = self.data.isel(sample=index)
        return MLData(features=subset.values,
                      target=subset['label'].values,
                      norm_stats=self.norm_stats,
                      batch_size=self.batch_size,
                      shuffle=shuffle,
                      num_workers=self.num_workers,
                      seed=self.seed)

    def sample_ids(self, partition: str = 'test'):
        """Sample ids of `partition` ('train', 'valid' or 'test'), in partition order."""
        return self.data['sample'].values[getattr(self.split, partition)]

    def train_dataloader(self) -> MLData:
        """
        Returns a dataloader for the training set.

        Returns
        -------
        MLData
            Dataloader for the training set, shuffled each epoch.
        """
        return self._train

    def val_dataloader(self) -> MLData:
        """
        Returns a dataloader for the validation set.

        Returns
        -------
        MLData
            Dataloader for the validation set, in fixed order.
        """
        return self._valid

    def test_dataloader(self) -> MLData:
        """
        Returns a dataloader for the test set.

        Returns
        -------
        MLData
            Dataloader for the test set, in fixed order.
        """
        return self._test
