"""
Distribution recipes: histogram, density, ECDF, violin and step charts.

Distribution shapes are read against the grid, so histograms and ECDFs use
both major and minor gridlines.
"""

import pandas as pd

from ..core.chart_spec import ChartSpec
from ..core.constants import CASES_DATASET, Geometry, IRIS_DATASET
from . import register_recipe
from .line import cumulative_confirmed


@register_recipe("dist1", IRIS_DATASET, "Histogram of sepal length")
def dist1(iris: pd.DataFrame):
    spec = (
        ChartSpec(Geometry.HISTOGRAM)
        .encode(x="sepal_length")
        .labs(x="Sepal length (cm)", y="Number of flowers")
        .grid(major="both", minor="both")
        .legend("none")
        .options(bins=20)
    )
    return iris[["sepal_length"]], spec


@register_recipe("dist2", IRIS_DATASET, "Petal length density per species")
def dist2(iris: pd.DataFrame):
    spec = (
        ChartSpec(Geometry.DENSITY)
        .encode(x="petal_length", fill="species")
        .labs(x="Petal length (cm)")
        .grid(major="y")
        .legend("top")
    )
    return iris[["species", "petal_length"]], spec


@register_recipe("dist3", IRIS_DATASET, "Empirical cumulative distribution of petal length")
def dist3(iris: pd.DataFrame):
    spec = (
        ChartSpec(Geometry.ECDF)
        .encode(x="petal_length", color="species")
        .limits(y=(0, 1))
        .labs(x="Petal length (cm)", y="Proportion of flowers")
        .grid(major="both", minor="both")
        .legend("bottom")
    )
    return iris[["species", "petal_length"]], spec


@register_recipe("dist4", IRIS_DATASET, "Sepal width per species as violins")
def dist4(iris: pd.DataFrame):
    spec = (
        ChartSpec(Geometry.VIOLIN)
        .encode(x="species", y="sepal_width", fill="species")
        .labs(x="", y="Sepal width (cm)")
        .grid(major="x")
        .legend("none")
        .options(points=True)
        .flip()
    )
    return iris[["species", "sepal_width"]], spec


@register_recipe("dist5", CASES_DATASET, "Cumulative confirmed cases as a step chart")
def dist5(cases: pd.DataFrame):
    data = cumulative_confirmed(cases)
    spec = (
        ChartSpec(Geometry.STEP)
        .encode(x="date", y="cases_total", color="country")
        .limits(y=(0, None))
        .labs(x="", y="Cumulative confirmed cases")
        .grid(major="both", minor="y")
        .legend("right")
    )
    return data, spec
