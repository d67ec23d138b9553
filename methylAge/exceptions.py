#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   exceptions.py

Errors raised by the probe-set study pipeline.

`ConfigurationError` aborts a study before any experiment runs. All the other
errors are scoped to a single probe-set experiment: the study records them as a
failed entry and moves on to the next probe set.
"""


class MethylAgeError(Exception):
    """Base class for all errors raised by methylAge."""


class ConfigurationError(MethylAgeError, ValueError):
    """The study configuration is invalid."""


class AlignmentError(MethylAgeError, ValueError):
    """Samples of the feature matrix could not be matched to labelled metadata."""


class DegenerateFeatureError(MethylAgeError, ValueError):
    """A probe-set filter left no feature column."""


class PartitionError(MethylAgeError, ValueError):
    """Too few samples to draw non-empty train/valid/test partitions."""


class CheckpointIOError(MethylAgeError, OSError):
    """The best-model checkpoint could not be written or read."""


class ProbeSetReadError(MethylAgeError, ValueError):
    """A probe-set file could not be decoded."""
