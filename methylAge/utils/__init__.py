# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2 
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de

from methylAge.utils.metrics import get_metrics
from methylAge.utils.utilities import TimeKeeper, set_seed, resolve_device

__all__ = [
    'get_metrics',
    'TimeKeeper',
    'set_seed',
    'resolve_device'
]
