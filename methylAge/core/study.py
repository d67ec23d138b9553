#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
@author: sbesnard
@File    :   study.py
@Time    :   Mon Sep 26 10:47:17 2022
@Author  :   Simon Besnard
@Version :   1.0
@Contact :   besnard@gfz-potsdam.de
@License :   (C)Copyright 2022-2023, GFZ-Potsdam
@Desc    :   A method class comparing age regressors trained on different probe sets
"""
import logging
import os
from typing import Union

import xarray as xr
from tqdm import tqdm

from methylAge.config import StudyConfig, load_config
from methylAge.core.experiment import Experiment
from methylAge.core.results import ExperimentFailure, StudyResult
from methylAge.dataloaders.alignment import align_samples
from methylAge.dataloaders.io import load_dense_array, load_metadata, load_string_array, orient_matrix, read_probe_set
from methylAge.exceptions import AlignmentError, MethylAgeError, ProbeSetReadError
from methylAge.utils.utilities import TimeKeeper

LOGGER = logging.getLogger(__name__)

class Study:
    """Study class running one experiment per probe set and comparing them.

    Experiments run strictly one after the other. A failing experiment is
    recorded as a failed entry and never stops the study.

    Directory structure
    -------------------
    * The study directory (study_dir): <base_dir>/<exp_name>/version-X.Y
    * If a study_dir is passed, the study is restored into it.

    Parameters
    ----------
    config : str or StudyConfig
        Path to the YAML study configuration, or an already loaded configuration.
    base_dir : str
        The base directory for the study. See `directory structure` for further details.
    exp_name : str, optional
        The study name. Default is 'probe_sets'.
        See `directory structure` for further details.
    study_dir : str, optional
        The directory to restore an existing study. If passed, an existing study is loaded.
        See `directory structure` for further details.
    """
    def __init__(self,
                 config: Union[str, StudyConfig],
                 base_dir: str = None,
                 exp_name: str = 'probe_sets',
                 study_dir: str = None):

        self.config = load_config(config) if isinstance(config, str) else config
        self.base_dir = base_dir
        self.exp_name = exp_name

        if study_dir is None:
            if base_dir is None:
                raise ValueError('one of `base_dir` or `study_dir` must be given')
            study_dir = self.version_dir(self.base_dir, self.exp_name)
            os.makedirs(study_dir, exist_ok=False)
        else:
            if not os.path.exists(study_dir):
                raise ValueError(f'restore path does not exist:\n{study_dir}')

        self.study_dir = study_dir

    def version_dir(self,
                    base_dir: str,
                    exp_name: str) -> str:
        """Returns the path of the next version of the study directory.

        Parameters
        ----------
        base_dir : str
            The base directory where the new version of the study directory will be created.
        exp_name : str
            The name of the study.

        Returns
        -------
        str
            The full path to the new version of the study directory.
        """

        return self.increment_dir_version(base_dir, exp_name)

    @staticmethod
    def increment_dir_version(base_dir: str,
                              exp_name: str) -> str:
        """Increments the version of a directory by appending the next available version number to the end of the directory name.

        Parameters
        ----------
        base_dir : str
            The base directory for the study.
        exp_name : str
            The name of the study.

        Returns
        -------
        str
            The name of the new directory with the incremented version number.
        """
        if not os.path.isdir(os.path.join(base_dir, exp_name)):
            os.makedirs(os.path.join(base_dir, exp_name))

        versions = []
        for d in os.listdir(os.path.join(base_dir, exp_name)):
            if not d.startswith("version-"):
                continue
            try:
                major, minor = (int(v) for v in d.split("-", 1)[1].split("."))
            except ValueError:
                continue
            versions.append((major, minor))

        if len(versions) == 0:
            version = "1.0"
        else:
            major, minor = max(versions)
            minor += 1
            if minor >= 10:
                major += 1
                minor = 0
            version = f"{major}.{minor}"

        return os.path.join(base_dir, exp_name, f"version-{version}")

    def load_data(self) -> xr.DataArray:
        """Load the raw inputs and align samples with their metadata label.

        Returns
        -------
        xr.DataArray
            Aligned `(sample, probe)` matrix with a `label` coordinate.
        """
        data_config = self.config.data
        probe_ids = load_string_array(data_config.probe_ids_path)
        sample_ids = load_string_array(data_config.sample_ids_path)
        matrix = orient_matrix(load_dense_array(data_config.features_path),
                               n_probes=len(probe_ids),
                               n_samples=len(sample_ids),
                               orientation=data_config.orientation)
        metadata = load_metadata(data_config.metadata_path, data_config.sample_column)

        return align_samples(matrix,
                             sample_ids,
                             probe_ids,
                             metadata,
                             sample_column=data_config.sample_column,
                             label_column=data_config.label_column)

    def run_probe_set(self, probe_set, data: xr.DataArray):
        """Run the experiment of one probe set.

        Returns
        -------
        ExperimentResult or ExperimentFailure
        """
        try:
            probes = read_probe_set(probe_set.path)
        except (OSError, ProbeSetReadError) as e:
            LOGGER.error('[%s] could not read probe set file: %s', probe_set.name, e)
            return ExperimentFailure(probe_set=probe_set.name, stage='probe_set',
                                     error_type=type(e).__name__, message=str(e))

        experiment = Experiment(probe_set, probes, data, self.config, self.study_dir)
        try:
            result = experiment.run()
        except (MethylAgeError, RuntimeError) as e:
            LOGGER.exception('[%s] experiment failed during %s', probe_set.name, experiment.stage)
            return ExperimentFailure(probe_set=probe_set.name, stage=experiment.stage,
                                     error_type=type(e).__name__, message=str(e),
                                     n_features=experiment.n_features)

        try:
            experiment.save(result)
        except OSError:
            LOGGER.exception('[%s] could not write experiment results', probe_set.name)
        return result

    def run(self) -> StudyResult:
        """Run every configured probe set in order and write `summary.csv`.

        Returns
        -------
        StudyResult
            One entry per probe set, in configuration order.
        """
        handler = logging.FileHandler(os.path.join(self.study_dir, 'study.log'))
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        package_logger = logging.getLogger('methylAge')
        package_logger.addHandler(handler)

        try:
            results = self._run()
        finally:
            package_logger.removeHandler(handler)
            handler.close()

        return results

    def _run(self) -> StudyResult:
        results = StudyResult()
        probe_sets = self.config.probe_sets

        try:
            data = self.load_data()
        except AlignmentError as e:
            LOGGER.exception('sample alignment failed, no experiment can run')
            for probe_set in probe_sets:
                results.add(ExperimentFailure(probe_set=probe_set.name, stage='align',
                                              error_type=type(e).__name__, message=str(e)))
            self.save_summary(results)
            return results

        timekeeper = TimeKeeper(n_folds=len(probe_sets))
        for probe_set in tqdm(probe_sets, desc='Running probe-set experiments'):
            results.add(self.run_probe_set(probe_set, data))
            timekeeper.lap(message=f"Time to run probe set {probe_set.name}: {{lap_time}}")
            timekeeper.time_left(message="Total time: {total_time}, est. remaining: {time_left}")

        self.save_summary(results)
        if results.best_probe_set is None:
            LOGGER.warning('no probe set could be evaluated')
        else:
            LOGGER.info('best probe set: %s (MAE=%.3f)', results.best_probe_set,
                        results[results.best_probe_set].mae)
        return results

    def save_summary(self, results: StudyResult) -> str:
        path = os.path.join(self.study_dir, 'summary.csv')
        results.summary().to_csv(path, index=False)
        return path
