#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
@author: sbesnard
@File    :   trainer.py
@Time    :   Mon Sep 26 10:47:17 2022
@Author  :   Simon Besnard
@Version :   1.0
@Contact :   besnard@gfz-potsdam.de
@License :   (C)Copyright 2022-2023, GFZ-Potsdam
@Desc    :   Epoch loop with early stopping, plateau learning-rate decay and best-checkpoint persistence
"""
import logging
import math
import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd
import torch
from torch import nn

from methylAge.dataloaders.base import MLData
from methylAge.exceptions import CheckpointIOError
from methylAge.utils.metrics import mae

LOGGER = logging.getLogger(__name__)

class TrainerState(Enum):
    RUNNING = 'running'
    EARLY_STOPPED = 'early_stopped'
    EXHAUSTED_EPOCHS = 'exhausted_epochs'

@dataclass(frozen=True)
class EpochRecord:
    epoch: int
    train_loss: float
    val_loss: float
    val_mae: float
    learning_rate: float

class TrainingHistory:
    """Append-only record of completed epochs."""

    def __init__(self) -> None:
        self._records: List[EpochRecord] = []

    def append(self, record: EpochRecord) -> None:
        expected = len(self._records) + 1
        if record.epoch != expected:
            raise ValueError(f'expected epoch {expected}, got {record.epoch}')
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EpochRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> EpochRecord:
        return self._records[index]

    @property
    def best_epoch(self) -> Optional[int]:
        """First epoch reaching the minimum finite validation loss."""
        best = None
        for record in self._records:
            if math.isfinite(record.val_loss) and (best is None or record.val_loss < best.val_loss):
                best = record
        return None if best is None else best.epoch

    def to_dataframe(self) -> pd.DataFrame:
        columns = ['epoch', 'train_loss', 'val_loss', 'val_mae', 'learning_rate']
        return pd.DataFrame([[getattr(r, c) for c in columns] for r in self._records], columns=columns)

@dataclass(frozen=True)
class TrainingOutcome:
    state: TrainerState
    epochs_ran: int
    best_epoch: int
    best_val_loss: float
    history: TrainingHistory
    checkpoint_path: str

class Trainer:
    """Train a regressor until early stopping or the end of the epoch budget.

    Each epoch runs one optimisation pass over the training batches, one
    no-gradient pass over the validation batches, records the epoch, steps the
    plateau scheduler with the validation loss and saves a checkpoint whenever
    the validation loss strictly improves. Training stops once `patience`
    consecutive epochs did not improve, or after `max_epochs`.

    Parameters
    ----------
    model : nn.Module
        Regressor returning one prediction per sample.
    checkpoint_path : str
        File the best model state is written to.
    max_epochs : int
        Epoch budget.
    patience : int
        Number of consecutive non-improving epochs before stopping.
    learning_rate : float
        Initial AdamW learning rate.
    weight_decay : float
        AdamW decoupled weight decay.
    lr_factor : float
        Factor applied to the learning rate on a plateau.
    lr_patience : int
        Non-improving epochs before the learning rate is reduced.
    huber_beta : float
        Transition point of the smooth L1 loss.
    device : torch.device
        Device the model and batches are moved to.
    """

    def __init__(self,
                 model: nn.Module,
                 checkpoint_path: str,
                 max_epochs: int = 200,
                 patience: int = 20,
                 learning_rate: float = 1e-3,
                 weight_decay: float = 1e-4,
                 lr_factor: float = 0.5,
                 lr_patience: int = 5,
                 huber_beta: float = 1.0,
                 device: torch.device = torch.device('cpu')) -> None:

        self.device = device
        self.model = model.to(device)
        self.checkpoint_path = checkpoint_path
        self.max_epochs = max_epochs
        self.patience = patience

        self.criterion = nn.SmoothL1Loss(beta=huber_beta)
        self.optimizer = torch.optim.AdamW(self.model.parameters(), lr=learning_rate, weight_decay=weight_decay)
        self.scheduler = torch.optim.lr_scheduler.ReduceLROnPlateau(self.optimizer,
                                                                    mode='min',
                                                                    factor=lr_factor,
                                                                    patience=lr_patience)

        self.state = TrainerState.RUNNING
        self.history = TrainingHistory()
        self.best_val_loss = math.inf
        self.best_epoch: Optional[int] = None
        self.bad_epochs = 0

    @classmethod
    def from_config(cls, model: nn.Module, checkpoint_path: str, training, device: torch.device) -> 'Trainer':
        """Build a trainer from a `TrainingConfig`."""
        return cls(model,
                   checkpoint_path,
                   max_epochs=training.max_epochs,
                   patience=training.patience,
                   learning_rate=training.learning_rate,
                   weight_decay=training.weight_decay,
                   lr_factor=training.lr_factor,
                   lr_patience=training.lr_patience,
                   huber_beta=training.huber_beta,
                   device=device)

    @property
    def learning_rate(self) -> float:
        return self.optimizer.param_groups[0]['lr']

    def train_epoch(self, train_data: MLData) -> float:
        """One optimisation pass; returns the mean batch loss."""
        self.model.train()
        running_loss = 0.0
        for features, target in train_data.loader():
            features, target = features.to(self.device), target.to(self.device)
            self.optimizer.zero_grad()
            loss = self.criterion(self.model(features), target)
            loss.backward()
            self.optimizer.step()
            running_loss += float(loss.item())

        return running_loss / max(1, train_data.n_batches)

    def validate_epoch(self, valid_data: MLData) -> Tuple[float, float]:
        """One no-gradient pass; returns the mean batch loss and the MAE of clamped predictions."""
        self.model.eval()
        running_loss = 0.0
        predictions, targets = [], []
        with torch.no_grad():
            for features, target in valid_data.loader():
                features, target = features.to(self.device), target.to(self.device)
                output = self.model(features)
                running_loss += float(self.criterion(output, target).item())
                predictions.append(output.cpu().numpy())
                targets.append(target.cpu().numpy())

        predicted = np.clip(np.concatenate(predictions), 0, None)
        return running_loss / max(1, valid_data.n_batches), mae(np.concatenate(targets), predicted)

    def save_checkpoint(self, epoch: int, val_loss: float) -> None:
        """Write the current model state, replacing the previous checkpoint atomically."""
        checkpoint = {'epoch': epoch,
                      'val_loss': float(val_loss),
                      'model_state_dict': {k: v.detach().cpu() for k, v in self.model.state_dict().items()}}
        tmp_path = self.checkpoint_path + '.tmp'
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.checkpoint_path)), exist_ok=True)
            torch.save(checkpoint, tmp_path)
            os.replace(tmp_path, self.checkpoint_path)
        except (OSError, RuntimeError) as e:
            raise CheckpointIOError(f'could not write checkpoint {self.checkpoint_path}: {e}') from e
        LOGGER.debug('saved checkpoint of epoch %d to %s', epoch, self.checkpoint_path)

    def step(self, epoch: int, train_loss: float, val_loss: float, val_mae: float) -> TrainerState:
        """Record a completed epoch and apply the scheduler, checkpoint and stopping transitions."""
        self.history.append(EpochRecord(epoch=epoch,
                                        train_loss=train_loss,
                                        val_loss=val_loss,
                                        val_mae=val_mae,
                                        learning_rate=self.learning_rate))
        self.scheduler.step(val_loss)

        improved = val_loss < self.best_val_loss
        if improved:
            self.best_val_loss = val_loss
            self.bad_epochs = 0
        else:
            self.bad_epochs += 1

        if improved or self.best_epoch is None:
            self.save_checkpoint(epoch, val_loss)
            self.best_epoch = epoch

        if self.bad_epochs >= self.patience:
            self.state = TrainerState.EARLY_STOPPED
        elif epoch >= self.max_epochs:
            self.state = TrainerState.EXHAUSTED_EPOCHS
        return self.state

    def fit(self, train_data: MLData, valid_data: MLData) -> TrainingOutcome:
        """Run the epoch loop until a terminal state is reached."""
        epoch = 0
        while self.state is TrainerState.RUNNING:
            epoch += 1
            train_loss = self.train_epoch(train_data)
            val_loss, val_mae = self.validate_epoch(valid_data)
            self.step(epoch, train_loss, val_loss, val_mae)
            LOGGER.info('epoch %d/%d: train_loss=%.4f val_loss=%.4f val_mae=%.3f lr=%.2e%s',
                        epoch, self.max_epochs, train_loss, val_loss, val_mae, self.history[-1].learning_rate,
                        ' *' if self.best_epoch == epoch else '')

        LOGGER.info('training %s after %d epochs, best epoch %d (val_loss=%.4f)',
                    self.state.value.replace('_', ' '), epoch, self.best_epoch, self.best_val_loss)

        return TrainingOutcome(state=self.state,
                               epochs_ran=epoch,
                               best_epoch=self.best_epoch,
                               best_val_loss=self.best_val_loss,
                               history=self.history,
                               checkpoint_path=self.checkpoint_path)
