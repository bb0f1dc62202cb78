import math

import numpy as np
import pytest

from plotbook.stats.distribution import (
    jitter_offsets,
    quartiles,
    scale_violin_widths,
    violin_profile,
)


def test_jitter_is_bounded_and_reproducible():
    first = jitter_offsets(200, 0.2, seed=3)
    second = jitter_offsets(200, 0.2, seed=3)

    assert first.shape == (200,)
    assert np.array_equal(first, second)
    assert np.all(np.abs(first) <= 0.2)
    assert not np.array_equal(first, jitter_offsets(200, 0.2, seed=4))


def test_jitter_zero_width_and_negative_width():
    assert np.array_equal(jitter_offsets(4, 0.0), np.zeros(4))
    with pytest.raises(ValueError):
        jitter_offsets(4, -0.1)


def test_violin_profile_spans_data_range_when_trimmed():
    values = np.array([1.0, 2.0, 2.5, 3.0, 4.0, np.nan])
    profile = violin_profile(values, grid_size=50)

    assert profile["n"] == 5
    assert profile["grid"].shape == (50,)
    assert np.isclose(profile["grid"][0], 1.0)
    assert np.isclose(profile["grid"][-1], 4.0)
    assert np.all(profile["density"] > 0)

    untrimmed = violin_profile(values, grid_size=50, trim=False)
    assert untrimmed["grid"][0] < 1.0
    assert untrimmed["grid"][-1] > 4.0


def test_violin_profile_degenerate_group_warns():
    with pytest.warns(RuntimeWarning, match="two distinct values"):
        profile = violin_profile([3.0, 3.0])
    assert profile["density"].size == 0
    assert profile["n"] == 2


def test_scale_violin_widths_modes():
    profiles = [
        {"density": np.array([1.0, 2.0]), "n": 10},
        {"density": np.array([1.0, 4.0]), "n": 5},
        {"density": np.array([]), "n": 1},
    ]

    area = scale_violin_widths(profiles, "area", max_width=0.4)
    assert np.allclose(area[0], [0.1, 0.2])
    assert np.allclose(area[1], [0.1, 0.4])
    assert area[2].size == 0

    count = scale_violin_widths(profiles, "count", max_width=0.4)
    assert np.allclose(count[0], [0.2, 0.4])
    assert np.allclose(count[1], [0.1, 0.4])

    width = scale_violin_widths(profiles, "width", max_width=0.4)
    assert np.allclose(width[0], [0.2, 0.4])
    assert np.allclose(width[1], [0.1, 0.4])

    with pytest.raises(ValueError, match="Unsupported violin scale"):
        scale_violin_widths(profiles, "height")


def test_quartiles():
    q1, med, q3 = quartiles([1.0, 2.0, 3.0, 4.0, 5.0])
    assert (q1, med, q3) == (2.0, 3.0, 4.0)
    assert all(math.isnan(v) for v in quartiles([]))
