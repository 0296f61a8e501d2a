"""
Box plot recipes on the iris measurements.
"""

import pandas as pd

from ..core.chart_spec import ChartSpec
from ..core.constants import Geometry, IRIS_DATASET
from ..core.transforms import filter_rows
from . import register_recipe


@register_recipe("box1", IRIS_DATASET, "Petal length distribution per species")
def box1(iris: pd.DataFrame):
    spec = (
        ChartSpec(Geometry.BOX)
        .encode(x="species", y="petal_length")
        .labs(x="", y="Petal length (cm)")
        .grid(major="x")
        .legend("none")
        .flip()
    )
    return iris[["species", "petal_length"]], spec


@register_recipe("box2", IRIS_DATASET, "Sepal width with raw observations")
def box2(iris: pd.DataFrame):
    # Box plots hide sample size; overlaying the points shows it
    data = filter_rows(iris, {"sepal_width": lambda s: s.notna()})[["species", "sepal_width"]]
    spec = (
        ChartSpec(Geometry.BOX)
        .encode(x="species", y="sepal_width", fill="species")
        .labs(x="", y="Sepal width (cm)")
        .grid(major="y")
        .legend("none")
        .options(points=True)
    )
    return data, spec
