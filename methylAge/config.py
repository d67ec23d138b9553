#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
# SPDX-FileCopyrightText: 2024 Helmholtz Centre Potsdam - GFZ German Research Centre for Geosciences
# SPDX-FileCopyrightText: 2024 Simon Besnard
# SPDX-License-Identifier: EUPL-1.2
# Version :   1.0
# Contact :   besnard@gfz-potsdam.de
# File    :   config.py

This module reads the YAML study configuration into immutable objects.

Example configuration:
----------------------
data:
  features_path: data/beta_values.npy
  probe_ids_path: data/probe_ids.txt
  sample_ids_path: data/sample_ids.txt
  metadata_path: data/metadata.csv
  sample_column: sample_id
  label_column: age
probe_sets:
  all_probes: all
  horvath_353: probe_sets/horvath_353.txt
training:
  max_epochs: 200
  batch_size: 32
  learning_rate: 0.001
  weight_decay: 0.0001
  patience: 20
split:
  train: 0.7
  valid: 0.15
  test: 0.15
  seed: 42
"""
import os
import re
from dataclasses import dataclass, field, fields
from typing import Any, Optional, Tuple

import yaml as yml

from methylAge.exceptions import ConfigurationError

ALL_PROBES = 'all'
ORIENTATIONS = ('auto', 'samples_x_probes', 'probes_x_samples')
SPLIT_TOLERANCE = 1e-6

def safe_name(name: str) -> str:
    """File-system friendly version of a probe-set name."""
    return re.sub(r'[^\w.-]+', '_', name).strip('_') or 'probe_set'

@dataclass(frozen=True)
class DataConfig:
    """Location of the raw inputs of a study."""
    features_path: str
    probe_ids_path: str
    sample_ids_path: str
    metadata_path: str
    sample_column: str = 'sample_id'
    label_column: str = 'age'
    orientation: str = 'auto'

    def __post_init__(self):
        if self.orientation not in ORIENTATIONS:
            raise ConfigurationError(f'orientation must be one of {ORIENTATIONS}, got `{self.orientation}`')

@dataclass(frozen=True)
class ProbeSet:
    """A named probe subset. `path=None` selects all probes."""
    name: str
    path: Optional[str] = None

    @property
    def use_all(self) -> bool:
        return self.path is None

@dataclass(frozen=True)
class TrainingConfig:
    """Fixed training schedule shared by every probe-set experiment."""
    max_epochs: int = 200
    batch_size: int = 32
    learning_rate: float = 1e-3
    weight_decay: float = 1e-4
    patience: int = 20
    lr_factor: float = 0.5
    lr_patience: int = 5
    dropout: float = 0.2
    hidden_dims: Tuple[int, ...] = (512, 256, 128)
    huber_beta: float = 1.0
    num_workers: int = 0
    device: str = 'auto'

    def __post_init__(self):
        for name in ('max_epochs', 'batch_size', 'patience', 'lr_patience'):
            if int(getattr(self, name)) <= 0:
                raise ConfigurationError(f'`{name}` must be a positive integer, got {getattr(self, name)}')
        if self.learning_rate <= 0:
            raise ConfigurationError(f'`learning_rate` must be positive, got {self.learning_rate}')
        if self.weight_decay < 0:
            raise ConfigurationError(f'`weight_decay` must be >= 0, got {self.weight_decay}')
        if not 0 < self.lr_factor < 1:
            raise ConfigurationError(f'`lr_factor` must be in (0, 1), got {self.lr_factor}')
        if not 0 <= self.dropout < 1:
            raise ConfigurationError(f'`dropout` must be in [0, 1), got {self.dropout}')
        if self.huber_beta <= 0:
            raise ConfigurationError(f'`huber_beta` must be positive, got {self.huber_beta}')
        if self.num_workers < 0:
            raise ConfigurationError(f'`num_workers` must be >= 0, got {self.num_workers}')
        if len(self.hidden_dims) == 0 or any(int(d) <= 0 for d in self.hidden_dims):
            raise ConfigurationError(f'`hidden_dims` must be a non-empty list of positive sizes, got {self.hidden_dims}')
        object.__setattr__(self, 'hidden_dims', tuple(int(d) for d in self.hidden_dims))

@dataclass(frozen=True)
class SplitConfig:
    """Train/valid/test proportions and the seed of the partitioner."""
    train: float = 0.7
    valid: float = 0.15
    test: float = 0.15
    seed: int = 42

    def __post_init__(self):
        if min(self.proportions) <= 0:
            raise ConfigurationError(f'split proportions must all be > 0, got {self.proportions}')
        if abs(sum(self.proportions) - 1.0) > SPLIT_TOLERANCE:
            raise ConfigurationError(f'split proportions must sum to 1.0, got {self.proportions}')

    @property
    def proportions(self) -> Tuple[float, float, float]:
        return (self.train, self.valid, self.test)

@dataclass(frozen=True)
class StudyConfig:
    """The whole run configuration, immutable for the duration of a study."""
    data: DataConfig
    probe_sets: Tuple[ProbeSet, ...]
    training: TrainingConfig = field(default_factory=TrainingConfig)
    split: SplitConfig = field(default_factory=SplitConfig)

    def __post_init__(self):
        if len(self.probe_sets) == 0:
            raise ConfigurationError('at least one probe set must be configured')
        names = [probe_set.name for probe_set in self.probe_sets]
        duplicated = sorted({name for name in names if names.count(name) > 1})
        if duplicated:
            raise ConfigurationError(f'duplicated probe set names: {duplicated}')

        # checkpoint and result paths are keyed by the file-system name
        by_path = {}
        for name in names:
            by_path.setdefault(safe_name(name).casefold(), []).append(name)
        clashes = [group for group in by_path.values() if len(group) > 1]
        if clashes:
            raise ConfigurationError(f'probe set names map to the same output path: {clashes}')

def _build(cls, section: Any, section_name: str):
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ConfigurationError(f'`{section_name}` must be a mapping')
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ConfigurationError(f'unknown keys in `{section_name}`: {sorted(unknown)}')
    try:
        return cls(**section)
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f'invalid `{section_name}` section: {e}') from e

def _resolve(path: Optional[str], root: str) -> Optional[str]:
    if path is None:
        return None
    path = os.path.expanduser(str(path))
    return path if os.path.isabs(path) else os.path.normpath(os.path.join(root, path))

def parse_probe_sets(section: Any, root: str = '') -> Tuple[ProbeSet, ...]:
    """Parse the `probe_sets` mapping of probe-set names to files (or `all`).

    Parameters
    ----------
    section : dict
        Mapping of probe-set name to a newline-delimited probe file, or `all`.
    root : str
        Directory relative paths are resolved against.

    Returns
    -------
    tuple of ProbeSet
        In configuration order.
    """
    if not isinstance(section, dict):
        raise ConfigurationError('`probe_sets` must be a mapping of name to probe file or `all`')
    probe_sets = []
    for name, path in section.items():
        if path is None or str(path).strip().lower() == ALL_PROBES:
            probe_sets.append(ProbeSet(name=str(name)))
        else:
            probe_sets.append(ProbeSet(name=str(name), path=_resolve(path, root)))
    return tuple(probe_sets)

def config_from_dict(config: dict, root: str = '') -> StudyConfig:
    """Build a `StudyConfig` from an already parsed YAML document."""
    if not isinstance(config, dict):
        raise ConfigurationError('configuration must be a mapping')
    unknown = set(config) - {'data', 'probe_sets', 'training', 'split'}
    if unknown:
        raise ConfigurationError(f'unknown configuration sections: {sorted(unknown)}')
    if 'data' not in config:
        raise ConfigurationError('missing `data` section')

    data = dict(config['data'] or {})
    for key in ('features_path', 'probe_ids_path', 'sample_ids_path', 'metadata_path'):
        if key in data:
            data[key] = _resolve(data[key], root)

    return StudyConfig(data=_build(DataConfig, data, 'data'),
                       probe_sets=parse_probe_sets(config.get('probe_sets', {ALL_PROBES: ALL_PROBES}), root),
                       training=_build(TrainingConfig, config.get('training'), 'training'),
                       split=_build(SplitConfig, config.get('split'), 'split'))

def load_config(config_path: str) -> StudyConfig:
    """Read a YAML study configuration.

    Relative paths in the file are resolved against the directory of `config_path`.
    """
    if not os.path.exists(config_path):
        raise ConfigurationError(f'configuration file does not exist:\n{config_path}')

    with open(config_path, 'r') as f:
        try:
            config = yml.safe_load(f)
        except yml.YAMLError as e:
            raise ConfigurationError(f'could not parse {config_path}: {e}') from e

    return config_from_dict(config, root=os.path.dirname(os.path.abspath(config_path)))
