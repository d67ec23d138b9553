import os

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from methylAge.cli import main
from methylAge.config import load_config
from methylAge.core.results import ExperimentFailure, ExperimentResult
from methylAge.core.study import Study
from methylAge.exceptions import CheckpointIOError
from methylAge.methods.MLP import MLPmethod
from methylAge.methods.trainer import Trainer


def test_study_runs_every_probe_set_in_order(tmp_path, study_inputs):
    study = Study(config=str(study_inputs), base_dir=str(tmp_path / "out"))

    results = study.run()

    assert [entry.probe_set for entry in results] == ["all_probes", "absent", "first_half"]
    assert isinstance(results["all_probes"], ExperimentResult)
    assert isinstance(results["first_half"], ExperimentResult)

    failure = results["absent"]
    assert isinstance(failure, ExperimentFailure)
    assert failure.stage == "filter"
    assert failure.error_type == "DegenerateFeatureError"
    assert results.failures == [failure]

    full = results["all_probes"]
    assert full.n_features == 12
    assert full.n_samples == 58
    assert sum(full.split_sizes) == 58
    assert results["first_half"].n_features == 6
    for entry in (full, results["first_half"]):
        assert np.all(entry.predicted >= 0.0)
        assert np.isfinite(entry.mae)
        assert entry.stop_reason in ("early_stopped", "exhausted_epochs")
    assert results.best_probe_set in ("all_probes", "first_half")


def test_study_writes_outputs(tmp_path, study_inputs):
    study = Study(config=str(study_inputs), base_dir=str(tmp_path / "out"))
    study.run()

    assert study.study_dir == os.path.join(str(tmp_path / "out"), "probe_sets", "version-1.0")
    summary = pd.read_csv(os.path.join(study.study_dir, "summary.csv"))
    assert list(summary["probe_set"]) == ["all_probes", "absent", "first_half"]
    assert list(summary["status"]) == ["ok", "failed", "ok"]
    assert summary.loc[1, "stop_reason"] == "failed during filter"

    assert os.path.exists(os.path.join(study.study_dir, "study.log"))
    assert os.path.exists(os.path.join(study.study_dir, "checkpoints", "all_probes", "best_model.pt"))
    assert not os.path.exists(os.path.join(study.study_dir, "experiments", "absent.nc"))

    with xr.open_dataset(os.path.join(study.study_dir, "experiments", "first_half.nc")) as ds:
        assert ds.attrs["probe_set"] == "first_half"
        assert ds.sizes["sample"] > 0
        assert ds["age_obs"].size == ds["age_pred"].size
        assert float(ds["age_pred"].min()) >= 0.0
        assert ds.sizes["epoch"] == ds.attrs["epochs_ran"]


def test_study_versions_are_incremented(tmp_path, study_inputs):
    config = load_config(str(study_inputs))
    first = Study(config=config, base_dir=str(tmp_path))
    second = Study(config=config, base_dir=str(tmp_path))

    assert first.study_dir.endswith("version-1.0")
    assert second.study_dir.endswith("version-1.1")


def test_alignment_failure_fails_every_probe_set(tmp_path, study_inputs):
    metadata = tmp_path / "data" / "metadata.csv"
    metadata.write_text("sample_id,age\nunknown_sample,30\n")

    study = Study(config=str(study_inputs), base_dir=str(tmp_path / "out"))
    results = study.run()

    assert len(results.failures) == 3
    assert {failure.stage for failure in results.failures} == {"align"}
    assert results.best_probe_set is None
    assert os.path.exists(os.path.join(study.study_dir, "summary.csv"))


def test_unreadable_probe_set_file(tmp_path, study_inputs):
    os.remove(tmp_path / "probe_sets" / "first_half.txt")

    results = Study(config=str(study_inputs), base_dir=str(tmp_path / "out")).run()

    assert results["first_half"].stage == "probe_set"
    assert isinstance(results["all_probes"], ExperimentResult)


def test_restore_path_must_exist(tmp_path, study_inputs):
    with pytest.raises(ValueError):
        Study(config=str(study_inputs), study_dir=str(tmp_path / "missing"))


def test_cli(tmp_path, study_inputs, capsys):
    assert main([str(study_inputs), "--base-dir", str(tmp_path / "out"), "--log-level", "WARNING"]) == 0

    out = capsys.readouterr().out
    assert "best probe set:" in out
    assert "absent: DegenerateFeatureError during filter" in out


def test_cli_invalid_configuration(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("data:\n  features_path: x.npy\nsplit:\n  train: 0.9\n")

    assert main([str(path), "--base-dir", str(tmp_path)]) == 2


def test_undecodable_probe_set_file(tmp_path, study_inputs):
    (tmp_path / "probe_sets" / "first_half.txt").write_bytes(b"# M\xfcller clock\ncg00000000\n")

    study = Study(config=str(study_inputs), base_dir=str(tmp_path / "out"))
    results = study.run()

    failure = results["first_half"]
    assert isinstance(failure, ExperimentFailure)
    assert failure.stage == "probe_set"
    assert failure.error_type == "ProbeSetReadError"
    assert isinstance(results["all_probes"], ExperimentResult)
    summary = pd.read_csv(os.path.join(study.study_dir, "summary.csv"))
    assert list(summary["status"]) == ["ok", "failed", "failed"]


def test_unreadable_checkpoint_keeps_history(tmp_path, study_inputs, monkeypatch):
    evaluate = MLPmethod.evaluate

    def evaluate_with_corrupt_checkpoint(self):
        if os.path.basename(self.tune_dir) == "first_half":
            with open(self.checkpoint_path, "wb") as f:
                f.write(b"not a checkpoint")
        return evaluate(self)

    monkeypatch.setattr(MLPmethod, "evaluate", evaluate_with_corrupt_checkpoint)
    study = Study(config=str(study_inputs), base_dir=str(tmp_path / "out"))
    results = study.run()

    result = results["first_half"]
    assert isinstance(result, ExperimentResult)
    assert result.status == "evaluation_failed"
    assert np.isnan(result.mae) and np.isnan(result.r2) and np.isnan(result.ccc)
    assert result.epochs_ran >= 1
    assert len(result.history) == result.epochs_ran
    assert result.stop_reason in ("early_stopped", "exhausted_epochs")
    assert results["all_probes"].status == "ok"
    assert results.best_probe_set == "all_probes"

    summary = pd.read_csv(os.path.join(study.study_dir, "summary.csv")).set_index("probe_set")
    assert summary.loc["first_half", "status"] == "evaluation_failed"
    assert np.isnan(summary.loc["first_half", "mae"])
    assert summary.loc["first_half", "epochs_ran"] == result.epochs_ran
    assert summary.loc["all_probes", "status"] == "ok"

    with xr.open_dataset(os.path.join(study.study_dir, "experiments", "first_half.nc")) as ds:
        assert "age_pred" not in ds
        assert ds.sizes["epoch"] == result.epochs_ran
        assert ds.attrs["status"] == "evaluation_failed"


def test_unwritable_checkpoint_keeps_history(tmp_path, study_inputs, monkeypatch):
    save_checkpoint = Trainer.save_checkpoint

    def save_or_fail(self, epoch, val_loss):
        if os.path.basename(os.path.dirname(self.checkpoint_path)) == "first_half":
            raise CheckpointIOError(f"could not write checkpoint {self.checkpoint_path}: disk full")
        return save_checkpoint(self, epoch, val_loss)

    monkeypatch.setattr(Trainer, "save_checkpoint", save_or_fail)
    results = Study(config=str(study_inputs), base_dir=str(tmp_path / "out")).run()

    result = results["first_half"]
    assert result.status == "evaluation_failed"
    assert result.stop_reason == "checkpoint_failed"
    assert result.epochs_ran == 1
    assert len(result.history) == 1
    assert "disk full" in result.error
    assert np.isnan(result.mae)
    assert results["all_probes"].status == "ok"
