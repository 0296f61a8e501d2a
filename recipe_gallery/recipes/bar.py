"""
Bar chart recipes on the iris measurements.

Bars encode magnitude by length, so the value axis starts at zero. bar2
repeats bar1's data on a truncated axis to show how that misleads.
"""

import pandas as pd

from ..core.chart_spec import ChartSpec, Highlight
from ..core.constants import Geometry, IRIS_DATASET
from ..core.transforms import derive_column, group_aggregate, quantile, recode
from . import register_recipe


def mean_by_species(iris: pd.DataFrame, column: str) -> pd.DataFrame:
    return group_aggregate(iris, "species", {column: "mean"})


@register_recipe("bar1", IRIS_DATASET, "Mean sepal length per species (zero-based)")
def bar1(iris: pd.DataFrame):
    means = mean_by_species(iris, "sepal_length")
    spec = (
        ChartSpec(Geometry.BAR)
        .encode(x="species", y="sepal_length")
        .limits(y=(0, None))
        .labs(x="", y="Mean sepal length (cm)")
        .grid(major="x")
        .legend("none")
        .flip()
    )
    return means, spec


@register_recipe("bar2", IRIS_DATASET, "Mean sepal length per species (truncated axis)")
def bar2(iris: pd.DataFrame):
    means = mean_by_species(iris, "sepal_length")
    spec = (
        ChartSpec(Geometry.BAR)
        .encode(x="species", y="sepal_length")
        .limits(y=(4.8, None))
        .labs(x="", y="Mean sepal length (cm)", title="Truncated axis")
        .grid(major="y")
        .legend("none")
    )
    return means, spec


@register_recipe("bar3", IRIS_DATASET, "Mean sepal length with interquartile range")
def bar3(iris: pd.DataFrame):
    summary = group_aggregate(
        iris,
        "species",
        {
            "sepal_length": "mean",
            "lower": ("sepal_length", quantile(0.25)),
            "upper": ("sepal_length", quantile(0.75)),
        },
    )
    spec = (
        ChartSpec(Geometry.BAR)
        .encode(x="species", y="sepal_length")
        .interval("lower", "upper")
        .limits(y=(0, None))
        .labs(x="", y="Sepal length (cm)", caption="Bars: mean. Whiskers: 25th to 75th percentile.")
        .grid(major="x")
        .legend("none")
        .options(alpha=0.8)
        .flip()
    )
    return summary, spec


@register_recipe("bar4", IRIS_DATASET, "Highlighting one species")
def bar4(iris: pd.DataFrame):
    recoded = derive_column(iris, "highlight", recode("species", "setosa"))
    means = group_aggregate(recoded, ["species", "highlight"], {"petal_length": "mean"}, sort_by="petal_length", descending=True)
    spec = (
        ChartSpec(Geometry.BAR)
        .encode(x="species", y="petal_length", fill="highlight")
        .with_highlight(Highlight.keys("setosa", label_series=False))
        .limits(y=(0, None))
        .labs(x="", y="Mean petal length (cm)")
        .grid(major="x")
        .legend("none")
        .flip()
    )
    return means, spec
