"""
Line and area chart recipes on the daily case counts.

Daily counts are noisy, so most recipes smooth them with a trailing 7-day
mean and drop the undefined leading days before drawing.
"""

import pandas as pd

from ..core.chart_spec import ChartSpec, Highlight
from ..core.constants import CASES_DATASET, Geometry
from ..core.transforms import (
    cumulative_sum,
    day_of_month,
    derive_column,
    drop_undefined,
    filter_rows,
    group_aggregate,
    rolling_mean,
)
from . import register_recipe

ROLLING_WINDOW = 7


def daily_confirmed(cases: pd.DataFrame) -> pd.DataFrame:
    """Confirmed cases summed per date and country."""
    confirmed = filter_rows(cases, {"type": "confirmed"})
    return group_aggregate(confirmed, ["date", "country"], {"cases": "sum"})


def smoothed_confirmed(cases: pd.DataFrame) -> pd.DataFrame:
    daily = daily_confirmed(cases)
    smoothed = rolling_mean(daily, "cases", ROLLING_WINDOW, order_by="date", group_by="country", name="cases_avg")
    return drop_undefined(smoothed, "cases_avg")


def cumulative_confirmed(cases: pd.DataFrame) -> pd.DataFrame:
    daily = daily_confirmed(cases)
    return cumulative_sum(daily, "cases", order_by="date", group_by="country", name="cases_total")


@register_recipe("line1", CASES_DATASET, "Confirmed cases, 7-day average")
def line1(cases: pd.DataFrame):
    data = smoothed_confirmed(cases)
    spec = (
        ChartSpec(Geometry.LINE)
        .encode(x="date", y="cases_avg", color="country")
        .limits(y=(0, None))
        .labs(x="", y="Daily confirmed cases (7-day average)")
        .grid(major="y")
        .legend("bottom")
    )
    return data, spec


@register_recipe("line2", CASES_DATASET, "Cumulative confirmed cases, highest total highlighted")
def line2(cases: pd.DataFrame):
    data = cumulative_confirmed(cases)
    totals = group_aggregate(data, "country", {"cases_total": "max"}, sort_by="cases_total", descending=True)
    top = totals["country"].iloc[0] if len(totals) else None
    spec = (
        ChartSpec(Geometry.LINE)
        .encode(x="date", y="cases_total", color="country")
        .with_highlight(Highlight.keys(top))
        .limits(y=(0, None))
        .labs(x="", y="Cumulative confirmed cases")
        .grid(major="y")
        .legend("none")
    )
    return data, spec


@register_recipe("line3", CASES_DATASET, "Countries whose 7-day average peaked above the median peak")
def line3(cases: pd.DataFrame):
    data = smoothed_confirmed(cases)
    peaks = group_aggregate(data, "country", {"cases_avg": "max"})
    threshold = float(peaks["cases_avg"].median()) if len(peaks) else 0.0
    spec = (
        ChartSpec(Geometry.LINE)
        .encode(x="date", y="cases_avg", color="country")
        .with_highlight(Highlight.max_above("cases_avg", threshold))
        .limits(y=(0, None))
        .labs(x="", y="Daily confirmed cases (7-day average)")
        .grid(major="y")
        .legend("none")
    )
    return data, spec


@register_recipe("line4", CASES_DATASET, "Confirmed cases during the first month for one country")
def line4(cases: pd.DataFrame):
    daily = daily_confirmed(cases)
    if daily.empty:
        return derive_column(daily, "day", day_of_month("date")), _line4_spec()

    country = daily["country"].iloc[0]
    first_month = daily["date"].min().to_period("M")
    one_country = filter_rows(
        daily,
        lambda df: (df["country"] == country) & (df["date"].dt.to_period("M") == first_month),
    )
    data = derive_column(one_country, "day", day_of_month("date"))
    return data, _line4_spec(f"{country}, {first_month.strftime('%B %Y')}")


def _line4_spec(title: str = "") -> ChartSpec:
    return (
        ChartSpec(Geometry.AREA)
        .encode(x="day", y="cases")
        .limits(y=(0, None))
        .labs(x="Day of month", y="Daily confirmed cases", title=title or None)
        .grid(major="y")
        .legend("none")
    )
