# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2 
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de

from methylAge.methods.MLP import MLPmethod, MLPRegressor
from methylAge.methods.trainer import Trainer, TrainerState, TrainingHistory, TrainingOutcome, EpochRecord

__all__ = [
    'MLPmethod',
    'MLPRegressor',
    'Trainer',
    'TrainerState',
    'TrainingHistory',
    'TrainingOutcome',
    'EpochRecord'
]
