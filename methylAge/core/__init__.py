"""
core

This module provides the orchestration of probe-set studies: one isolated
experiment per probe set and the comparison of their results.

Submodules:
-----------
study : Provides the Study class running and comparing all probe-set experiments.
experiment : Provides the Experiment class running one probe-set pipeline.
results : Provides the ExperimentResult, ExperimentFailure and StudyResult containers.

Example usage:
--------------
from methylAge.core import Study

study_ = Study(config='config/probe_set_study.yaml', base_dir='output')
results = study_.run()
print(results.summary())
"""

from methylAge.core.study import Study
from methylAge.core.experiment import Experiment
from methylAge.core.results import ExperimentResult, ExperimentFailure, StudyResult

__all__ = [
    'Study',
    'Experiment',
    'ExperimentResult',
    'ExperimentFailure',
    'StudyResult'
]
