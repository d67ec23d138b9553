import os

import pytest
import yaml

from methylAge.config import (
    SplitConfig,
    StudyConfig,
    TrainingConfig,
    ProbeSet,
    DataConfig,
    config_from_dict,
    load_config,
)
from methylAge.exceptions import ConfigurationError


def test_load_config_resolves_paths_relative_to_file(study_inputs):
    config = load_config(str(study_inputs))
    root = os.path.dirname(str(study_inputs))

    assert config.data.features_path == os.path.join(root, "data", "beta.npy")
    assert config.data.label_column == "age"
    assert [p.name for p in config.probe_sets] == ["all_probes", "absent", "first_half"]
    assert config.probe_sets[0].use_all
    assert config.probe_sets[2].path == os.path.join(root, "probe_sets", "first_half.txt")
    assert config.training.hidden_dims == (8,)
    assert config.split.proportions == (0.7, 0.15, 0.15)


def test_defaults():
    training = TrainingConfig()
    assert training.max_epochs == 200
    assert training.patience == 20
    assert SplitConfig().seed == 42


@pytest.mark.parametrize(
    "proportions",
    [(0.7, 0.2, 0.2), (0.5, 0.5, 0.0), (1.2, -0.1, -0.1)],
)
def test_invalid_split_proportions(proportions):
    train, valid, test = proportions
    with pytest.raises(ConfigurationError):
        SplitConfig(train=train, valid=valid, test=test)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_epochs": 0},
        {"batch_size": -1},
        {"patience": 0},
        {"dropout": 1.0},
        {"lr_factor": 1.5},
        {"hidden_dims": []},
    ],
)
def test_invalid_training(kwargs):
    with pytest.raises(ConfigurationError):
        TrainingConfig(**kwargs)


def test_config_is_immutable():
    training = TrainingConfig()
    with pytest.raises(AttributeError):
        training.max_epochs = 3


def test_duplicated_probe_set_names():
    data = DataConfig("x.npy", "p.txt", "s.txt", "m.csv")
    with pytest.raises(ConfigurationError, match="duplicated"):
        StudyConfig(data=data, probe_sets=(ProbeSet("a"), ProbeSet("a", "a.txt")))


def test_unknown_keys_are_rejected():
    config = {
        "data": {"features_path": "x.npy", "probe_ids_path": "p.txt",
                 "sample_ids_path": "s.txt", "metadata_path": "m.csv"},
        "training": {"epochs": 10},
    }
    with pytest.raises(ConfigurationError, match="unknown keys"):
        config_from_dict(config)


def test_missing_probe_sets_defaults_to_all_probes():
    config = config_from_dict({
        "data": {"features_path": "x.npy", "probe_ids_path": "p.txt",
                 "sample_ids_path": "s.txt", "metadata_path": "m.csv"},
    })
    assert len(config.probe_sets) == 1
    assert config.probe_sets[0].use_all


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("data: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_load_config_invalid_split(tmp_path, study_inputs):
    config = yaml.safe_load(study_inputs.read_text())
    config["split"]["train"] = 0.9
    path = tmp_path / "bad_split.yaml"
    path.write_text(yaml.safe_dump(config))
    with pytest.raises(ConfigurationError, match="sum to 1.0"):
        load_config(str(path))


def test_probe_set_names_sharing_an_output_path():
    data = DataConfig("x.npy", "p.txt", "s.txt", "m.csv")
    with pytest.raises(ConfigurationError, match="same output path"):
        StudyConfig(data=data, probe_sets=(ProbeSet("first half", "a.txt"), ProbeSet("first_half")))


def test_non_numeric_training_value(tmp_path, study_inputs):
    config = yaml.safe_load(study_inputs.read_text())
    config["training"]["max_epochs"] = "abc"
    path = tmp_path / "bad_epochs.yaml"
    path.write_text(yaml.safe_dump(config))
    with pytest.raises(ConfigurationError, match="training"):
        load_config(str(path))
