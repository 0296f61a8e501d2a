"""Shared fixtures for recipe gallery tests."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from recipe_gallery.core.artifact_writer import ArtifactWriter
from recipe_gallery.core.chart_renderer import ChartRenderer
from recipe_gallery.core.data_loader import load_iris_frame, simulate_case_counts


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture(scope="session")
def iris():
    return load_iris_frame()


@pytest.fixture(scope="session")
def cases():
    return simulate_case_counts(["Austria", "Czechia", "Slovakia"], start_date="2020-03-01", days=45, seed=7)


@pytest.fixture
def renderer(tmp_path):
    return ChartRenderer(output_directory=str(tmp_path))


@pytest.fixture
def writer(renderer):
    return ArtifactWriter(context=renderer.context)
