import numpy as np
import pytest
import torch

from methylAge.config import TrainingConfig
from methylAge.dataloaders.base import MLData
from methylAge.dataloaders.scaler import fit_scaling
from methylAge.dataloaders.splitter import split_indices
from methylAge.exceptions import CheckpointIOError
from methylAge.methods.MLP import MLPmethod, MLPRegressor

TINY = TrainingConfig(max_epochs=3, batch_size=8, hidden_dims=(8,), patience=2, device="cpu")


def test_regressor_output_shape():
    model = MLPRegressor(5, hidden_dims=(7, 3), dropout=0.1)

    assert model(torch.zeros(4, 5)).shape == (4,)
    assert model(torch.zeros(1, 5)).shape == (1,)
    linear = [m for m in model.modules() if isinstance(m, torch.nn.Linear)]
    assert [m.out_features for m in linear] == [7, 3, 1]


def test_negative_predictions_are_clamped(tmp_path):
    model = MLPRegressor(2, hidden_dims=(4,), dropout=0.0)
    with torch.no_grad():
        model.net[-1].weight.zero_()
        model.net[-1].bias.fill_(-5.0)
    X = np.ones((3, 2))
    ml_data = MLData(X, np.zeros(3), fit_scaling(X), batch_size=2)

    predicted = MLPmethod(str(tmp_path), TINY).predict(model, ml_data)

    np.testing.assert_array_equal(predicted, np.zeros(3))


def test_train_and_evaluate(tmp_path, aligned):
    split = split_indices(aligned.sizes["sample"], (0.7, 0.15, 0.15), seed=42)
    ml_method = MLPmethod(str(tmp_path / "tune"), TINY, seed=42)

    outcome = ml_method.train(aligned, split)
    evaluation = ml_method.evaluate()

    assert 1 <= outcome.epochs_ran <= TINY.max_epochs
    assert (tmp_path / "tune" / "best_model.pt").exists()
    assert len(evaluation["predicted"]) == len(split.test)
    assert np.all(evaluation["predicted"] >= 0.0)
    np.testing.assert_array_equal(evaluation["actual"], aligned["label"].values[split.test])
    np.testing.assert_array_equal(evaluation["sample"], aligned["sample"].values[split.test])
    assert set(evaluation["metrics"]) == {"mae", "r2", "ccc", "rmse", "pearson_r"}


def test_training_is_reproducible(tmp_path, aligned):
    split = split_indices(aligned.sizes["sample"], (0.7, 0.15, 0.15), seed=42)

    runs = []
    for name in ("first", "second"):
        ml_method = MLPmethod(str(tmp_path / name), TINY, seed=7)
        ml_method.train(aligned, split)
        runs.append(ml_method.evaluate()["predicted"])

    np.testing.assert_allclose(runs[0], runs[1])


def test_corrupt_checkpoint(tmp_path, aligned):
    split = split_indices(aligned.sizes["sample"], (0.7, 0.15, 0.15), seed=42)
    ml_method = MLPmethod(str(tmp_path), TINY)
    ml_method.train(aligned, split)

    with open(ml_method.checkpoint_path, "wb") as f:
        f.write(b"not a checkpoint")

    with pytest.raises(CheckpointIOError):
        ml_method.evaluate()


def test_evaluate_before_train(tmp_path):
    with pytest.raises(RuntimeError):
        MLPmethod(str(tmp_path), TINY).evaluate()
