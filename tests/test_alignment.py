import numpy as np
import pandas as pd
import pytest

from methylAge.dataloaders.alignment import align_samples, filter_probes, normalize_sample_id
from methylAge.exceptions import AlignmentError, DegenerateFeatureError


PROBES = ["cg01", "cg02", "cg03"]


def _matrix(n_samples):
    return np.arange(n_samples * len(PROBES), dtype=np.float64).reshape(n_samples, len(PROBES))


def test_normalize_sample_id():
    assert normalize_sample_id(" gsm123 ") == normalize_sample_id("GSM123")


def test_ids_match_ignoring_case_and_whitespace():
    metadata = pd.DataFrame({"sample_id": ["GSM123", "GSM124"], "age": [30.0, 50.0]})

    data = align_samples(_matrix(2), [" gsm123 ", "Gsm124"], PROBES, metadata)

    assert data.dims == ("sample", "probe")
    np.testing.assert_array_equal(data["label"].values, [30.0, 50.0])


def test_rows_keep_matrix_order_and_drop_unlabelled():
    metadata = pd.DataFrame({
        "sample_id": ["S4", "S3", "S2", "S1"],
        "age": [40.0, None, "unknown", 10.0],
    })

    data = align_samples(_matrix(5), ["S1", "S2", "S3", "S4", "S5"], PROBES, metadata)

    assert list(data["sample"].values) == ["S1", "S4"]
    np.testing.assert_array_equal(data["label"].values, [10.0, 40.0])
    np.testing.assert_array_equal(data.values, _matrix(5)[[0, 3]])
    assert list(data["probe"].values) == PROBES


def test_no_match_raises():
    metadata = pd.DataFrame({"sample_id": ["X1"], "age": [20.0]})
    with pytest.raises(AlignmentError):
        align_samples(_matrix(2), ["S1", "S2"], PROBES, metadata)


def test_duplicate_sample_ids_raise():
    metadata = pd.DataFrame({"sample_id": ["S1"], "age": [20.0]})
    with pytest.raises(AlignmentError, match="not unique"):
        align_samples(_matrix(2), ["S1", " s1"], PROBES, metadata)


def test_missing_label_column_raises():
    metadata = pd.DataFrame({"sample_id": ["S1"], "years": [20.0]})
    with pytest.raises(AlignmentError):
        align_samples(_matrix(1), ["S1"], PROBES, metadata)


def test_shape_mismatch_raises():
    metadata = pd.DataFrame({"sample_id": ["S1", "S2"], "age": [20.0, 30.0]})
    with pytest.raises(AlignmentError):
        align_samples(_matrix(2), ["S1", "S2"], PROBES[:2], metadata)


def test_filter_probes_keeps_column_order(aligned):
    probes = set(aligned["probe"].values[[5, 1, 3]]) | {"cg_not_measured"}

    filtered = filter_probes(aligned, probes)

    assert list(filtered["probe"].values) == list(aligned["probe"].values[[1, 3, 5]])
    assert filtered.sizes["sample"] == aligned.sizes["sample"]
    np.testing.assert_array_equal(filtered["label"].values, aligned["label"].values)


def test_filter_probes_all(aligned):
    assert filter_probes(aligned, None) is aligned


def test_filter_probes_without_overlap(aligned):
    with pytest.raises(DegenerateFeatureError):
        filter_probes(aligned, {"cg99999999"})
