#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   splitter.py

Deterministic train/valid/test partitioning of aligned samples.

The split is drawn in two stages: train is separated from the remainder, then
the remainder is divided into valid and test by the ratio
`p_valid / (p_valid + p_test)`.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence, Tuple

import numpy as np
from sklearn.model_selection import train_test_split

from methylAge.exceptions import PartitionError

@dataclass(frozen=True)
class SplitIndices:
    """Row indices of the three partitions, each sorted ascending."""
    train: np.ndarray
    valid: np.ndarray
    test: np.ndarray

    @property
    def sizes(self) -> Tuple[int, int, int]:
        return (len(self.train), len(self.valid), len(self.test))

    def validate(self, n_samples: int) -> None:
        """Check the three sets are pairwise disjoint and cover `range(n_samples)`."""
        merged = np.concatenate([self.train, self.valid, self.test])
        if merged.size != n_samples or not np.array_equal(np.sort(merged), np.arange(n_samples)):
            raise PartitionError(f'split does not partition range({n_samples})')

def _round_half_up(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

def partition_sizes(n_samples: int,
                    proportions: Sequence[float]) -> Tuple[int, int, int]:
    """Number of train, valid and test samples for `n_samples`.

    Train gets `round(p_train * n)`; the remainder is shared between valid and
    test by their relative ratio. Halves are rounded up. Each partition is kept
    non-empty.
    """
    if n_samples < 3:
        raise PartitionError(f'at least 3 samples are needed to split into train/valid/test, got {n_samples}')

    p_train, p_valid, p_test = proportions
    n_train = min(max(_round_half_up(p_train * n_samples), 1), n_samples - 2)
    remainder = n_samples - n_train
    n_valid = min(max(_round_half_up(remainder * p_valid / (p_valid + p_test)), 1), remainder - 1)

    return n_train, n_valid, remainder - n_valid

def split_indices(n_samples: int,
                  proportions: Sequence[float] = (0.7, 0.15, 0.15),
                  seed: int = 42) -> SplitIndices:
    """Draw the train/valid/test partition of `range(n_samples)`.

    Parameters
    ----------
    n_samples : int
        Number of aligned samples.
    proportions : Sequence[float]
        `(p_train, p_valid, p_test)`, summing to 1.
    seed : int
        Random state of both stages. Same seed, size and proportions give the same partition.

    Returns
    -------
    SplitIndices
    """
    n_train, n_valid, n_test = partition_sizes(n_samples, proportions)
    indices = np.arange(n_samples)

    train_idx, remainder_idx = train_test_split(indices,
                                                train_size=n_train,
                                                test_size=n_valid + n_test,
                                                shuffle=True,
                                                random_state=seed)
    valid_idx, test_idx = train_test_split(remainder_idx,
                                           train_size=n_valid,
                                           test_size=n_test,
                                           shuffle=True,
                                           random_state=seed)

    split = SplitIndices(train=np.sort(train_idx), valid=np.sort(valid_idx), test=np.sort(test_idx))
    split.validate(n_samples)
    return split
