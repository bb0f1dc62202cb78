import math

import numpy as np
import pandas as pd
import pytest
from scipy.stats import t as student_t

from plotbook.stats.summary import (
    error_half_width,
    error_label,
    standard_error,
    summarize_groups,
    t_critical,
)


def test_standard_error_and_t_critical():
    assert np.isclose(standard_error([1.0, 2.0, 3.0]), 1.0 / math.sqrt(3.0))
    assert math.isnan(standard_error([5.0]))
    assert math.isnan(standard_error([np.nan, 2.0]))

    assert np.isclose(t_critical(3, 0.95), student_t.ppf(0.975, 2))
    assert np.isclose(t_critical(11, 0.90), student_t.ppf(0.95, 10))
    assert math.isnan(t_critical(1))
    with pytest.raises(ValueError):
        t_critical(5, level=1.5)


def test_summarize_groups_values():
    df = pd.DataFrame(
        {
            "g": pd.Categorical(["b", "a", "b", "b", "a"], categories=["b", "a"], ordered=True),
            "v": [1.0, 10.0, 2.0, 3.0, 14.0],
        }
    )

    summary = summarize_groups(df, "v", "g")

    # Category order is preserved, not alphabetical.
    assert summary["g"].tolist() == ["b", "a"]
    row_b = summary.iloc[0]
    assert int(row_b["n"]) == 3
    assert np.isclose(row_b["mean"], 2.0)
    assert np.isclose(row_b["sd"], 1.0)
    assert np.isclose(row_b["se"], 1.0 / math.sqrt(3.0))
    expected_half = student_t.ppf(0.975, 2) / math.sqrt(3.0)
    assert np.isclose(row_b["ci_half"], expected_half)
    assert np.isclose(row_b["ci_low"], 2.0 - expected_half)
    assert np.isclose(row_b["ci_high"], 2.0 + expected_half)

    row_a = summary.iloc[1]
    assert np.isclose(row_a["mean"], 12.0)
    assert np.isclose(row_a["sd"], math.sqrt(8.0))


def test_summarize_groups_single_observation_and_nonfinite():
    df = pd.DataFrame({"g": ["x", "y", "y", "z"], "v": [4.0, 1.0, np.nan, np.nan]})

    summary = summarize_groups(df, "v", "g")

    # Group "z" has no finite values and is skipped.
    assert summary["g"].tolist() == ["x", "y"]
    assert summary["n"].tolist() == [1, 1]
    assert summary[["sd", "se", "ci_half"]].isna().all().all()


def test_summarize_groups_two_factors():
    df = pd.DataFrame(
        {
            "g": ["a", "a", "a", "b"],
            "h": ["p", "q", "q", "p"],
            "v": [1.0, 2.0, 4.0, 5.0],
        }
    )
    summary = summarize_groups(df, "v", ["g", "h"])

    assert list(zip(summary["g"], summary["h"])) == [("a", "p"), ("a", "q"), ("b", "p")]
    assert np.isclose(summary.loc[1, "mean"], 3.0)


def test_summarize_groups_ci_brackets_mean():
    rng = np.random.default_rng(0)
    df = pd.DataFrame({"g": np.repeat(["a", "b", "c"], 6), "v": rng.normal(10, 2, 18)})
    summary = summarize_groups(df, "v", "g", level=0.9)
    assert (summary["ci_low"] <= summary["mean"]).all()
    assert (summary["mean"] <= summary["ci_high"]).all()
    # SE < 90% CI half-width for n=6
    assert (summary["se"] < summary["ci_half"]).all()


def test_summarize_groups_missing_columns():
    df = pd.DataFrame({"g": ["a"], "v": [1.0]})
    with pytest.raises(KeyError):
        summarize_groups(df, "missing", "g")


def test_error_half_width_selection():
    df = pd.DataFrame({"g": ["a", "a", "a"], "v": [1.0, 2.0, 3.0]})
    summary = summarize_groups(df, "v", "g")

    assert np.isclose(error_half_width(summary, "sd").iloc[0], 1.0)
    assert np.isclose(error_half_width(summary, "se").iloc[0], 1.0 / math.sqrt(3.0))
    assert np.isclose(error_half_width(summary, "ci").iloc[0], summary["ci_half"].iloc[0])
    with pytest.raises(ValueError, match="Unsupported error kind"):
        error_half_width(summary, "iqr")


def test_error_label_text():
    assert error_label("sd") == "Mean ± 1 SD"
    assert error_label("ci", 0.9) == "Mean with 90% CI"
