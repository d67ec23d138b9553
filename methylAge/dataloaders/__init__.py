# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2 
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de

from methylAge.dataloaders.base import MLData
from methylAge.dataloaders.ml_dataloader import MLDataModule
from methylAge.dataloaders.scaler import ScalingStats, fit_scaling, apply_scaling
from methylAge.dataloaders.splitter import SplitIndices, split_indices, partition_sizes
from methylAge.dataloaders.alignment import align_samples, filter_probes, normalize_sample_id

__all__ = [
    'MLData',
    'MLDataModule',
    'ScalingStats',
    'fit_scaling',
    'apply_scaling',
    'SplitIndices',
    'split_indices',
    'partition_sizes',
    'align_samples',
    'filter_probes',
    'normalize_sample_id'
]
