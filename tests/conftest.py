"""Pytest configuration for repository-relative imports and shared data."""

import os
import sys

import matplotlib
import numpy as np
import pandas as pd
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

matplotlib.use("Agg")


@pytest.fixture
def sample_frame():
    """Small cleaned-style dataset: three species on two islands."""
    rng = np.random.default_rng(7)
    species = ["Adelie"] * 8 + ["Gentoo"] * 8 + ["Chinstrap"] * 6
    island = ["Biscoe", "Dream"] * 11
    base = {"Adelie": 3700.0, "Gentoo": 5000.0, "Chinstrap": 3750.0}
    flipper = {"Adelie": 190.0, "Gentoo": 217.0, "Chinstrap": 196.0}
    return pd.DataFrame(
        {
            "species": species,
            "island": island,
            "flipper_length_mm": [flipper[s] + rng.normal(0, 5) for s in species],
            "body_mass_g": [base[s] + rng.normal(0, 300) for s in species],
            "bill_depth_mm": [17.0 + rng.normal(0, 1.5) for _ in species],
        }
    )


@pytest.fixture
def rendered_figures(monkeypatch):
    """Keep figures open after saving so tests can inspect their artists."""
    import matplotlib.pyplot as plt

    from plotbook.plotting import aesthetics, distributions, overlays, style, summary_plots

    figures = []

    def _finalize_and_keep(fig, **kwargs):
        figures.append(fig)
        kwargs["close"] = False
        return style.finalize_figure(fig, **kwargs)

    for module in (aesthetics, distributions, overlays, summary_plots):
        monkeypatch.setattr(module, "finalize_figure", _finalize_and_keep)
    yield figures
    for fig in figures:
        plt.close(fig)
