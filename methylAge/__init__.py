# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2 
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de

__title__ = 'methylAge'
__version__ = '1.0'
__author__ = 'Simon Besnard'
__author_email__ = 'besnard@gfz-potsdam.de'
__license__ = 'EUPL-1.2'
__copyright__ = '2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences'

from . import exceptions, config, utils, dataloaders, methods, core

__all__ = [
    "exceptions",
    "config",
    "utils",
    "dataloaders",
    "methods",
    "core"
]
