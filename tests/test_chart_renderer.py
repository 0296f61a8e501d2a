"""Rendering tests for ChartRenderer; figures are inspected, never written."""

import pandas as pd
import pytest
from matplotlib.colors import to_hex
from matplotlib.ticker import AutoMinorLocator, NullLocator

from recipe_gallery.core.chart_spec import ChartSpec, Highlight
from recipe_gallery.core.constants import Geometry
from recipe_gallery.core.exceptions import SchemaMismatch
from recipe_gallery.recipes import get_recipe


@pytest.fixture
def two_bars():
    return pd.DataFrame({"group": ["a", "b"], "value": [5.0, 6.0]})


@pytest.fixture
def three_series():
    dates = pd.date_range("2020-03-01", periods=5, freq="D")
    frames = []
    for key, scale in (("a", 1.0), ("b", 3.0), ("c", 2.0)):
        frames.append(pd.DataFrame({"date": dates, "key": key, "value": [scale * i for i in range(5)]}))
    return pd.concat(frames, ignore_index=True)


def _visible_ratio(ax):
    lo = ax.get_ylim()[0]
    heights = sorted(patch.get_height() for patch in ax.patches)
    return (heights[0] - lo) / (heights[1] - lo)


def test_zero_based_axis_keeps_bar_ratio(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").limits(y=(0, None))
    fig = renderer.render(spec, two_bars)
    ax = fig.axes[0]

    assert ax.get_ylim()[0] == 0
    assert _visible_ratio(ax) == pytest.approx(5 / 6)


def test_truncated_axis_exaggerates_difference(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").limits(y=(4.5, None))
    ax = renderer.render(spec, two_bars).axes[0]

    assert ax.get_ylim()[0] == 4.5
    assert _visible_ratio(ax) == pytest.approx(1 / 3)


def test_unpinned_bound_follows_data(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value")
    ax = renderer.render(spec, two_bars).axes[0]

    lo, hi = ax.get_ylim()
    assert lo == pytest.approx(4.95)
    assert hi == pytest.approx(6.05)


def test_flip_moves_value_axis_to_horizontal(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").limits(y=(0, None)).flip()
    ax = renderer.render(spec, two_bars).axes[0]

    assert ax.get_xlim()[0] == 0
    assert [label.get_text() for label in ax.get_yticklabels()] == ["a", "b"]
    assert sorted(patch.get_width() for patch in ax.patches) == [5.0, 6.0]


def test_gridlines_follow_presented_axes(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").grid(major="x").flip()
    ax = renderer.render(spec, two_bars).axes[0]

    assert any(line.get_visible() for line in ax.xaxis.get_gridlines())
    assert not any(line.get_visible() for line in ax.yaxis.get_gridlines())
    assert isinstance(ax.xaxis.get_minor_locator(), NullLocator)


def test_minor_gridlines(renderer, iris):
    spec = ChartSpec(Geometry.HISTOGRAM).encode(x="sepal_length").grid(major="both", minor="y")
    ax = renderer.render(spec, iris).axes[0]

    assert isinstance(ax.yaxis.get_minor_locator(), AutoMinorLocator)
    assert isinstance(ax.xaxis.get_minor_locator(), NullLocator)


def test_highlight_mutes_other_series(renderer, three_series):
    spec = (
        ChartSpec(Geometry.LINE)
        .encode(x="date", y="value", color="key")
        .with_highlight(Highlight.keys("b"))
        .legend("none")
    )
    ax = renderer.render(spec, three_series).axes[0]

    colors = {line.get_label(): to_hex(line.get_color()) for line in ax.get_lines()}
    assert colors["b"] == to_hex(renderer.color_palette[0])
    muted = [line for line in ax.get_lines() if line.get_label().startswith("_")]
    assert len(muted) == 2
    assert all(to_hex(line.get_color()) == to_hex(renderer.muted_color) for line in muted)
    assert [text.get_text().strip() for text in ax.texts] == ["b"]
    assert ax.get_legend() is None


def test_highlight_labels_drop_on_overlap(renderer):
    dates = pd.date_range("2020-03-01", periods=3, freq="D")
    data = pd.DataFrame({
        "date": list(dates) * 4,
        "key": [k for k in "abcd" for _ in range(3)],
        "value": [0, 1, 10] * 4,
    })
    spec = (
        ChartSpec(Geometry.LINE)
        .encode(x="date", y="value", color="key")
        .with_highlight(Highlight.keys(*"abcd"))
        .limits(y=(0, 20))
    )
    ax = renderer.render(spec, data).axes[0]

    # four labels on the same terminal point leave room for three positions
    assert len(ax.texts) == 3


def test_legend_bottom(renderer, three_series):
    spec = ChartSpec(Geometry.LINE).encode(x="date", y="value", color="key").legend("bottom")
    ax = renderer.render(spec, three_series).axes[0]

    legend = ax.get_legend()
    assert legend is not None
    assert [text.get_text() for text in legend.get_texts()] == ["a", "b", "c"]


@pytest.mark.parametrize("geometry", [Geometry.HISTOGRAM, Geometry.DENSITY, Geometry.ECDF])
def test_stat_geometries_render(renderer, iris, geometry):
    spec = ChartSpec(geometry).encode(x="petal_length", fill="species")
    ax = renderer.render(spec, iris).axes[0]

    assert ax.get_ylabel() in {"count", "density", "proportion"}
    assert ax.get_xlabel() == "petal_length"


@pytest.mark.parametrize("geometry", [Geometry.BOX, Geometry.VIOLIN])
def test_categorical_distributions_render(renderer, iris, geometry):
    spec = ChartSpec(geometry).encode(x="species", y="sepal_width").options(points=True).flip()
    ax = renderer.render(spec, iris).axes[0]

    assert [label.get_text() for label in ax.get_yticklabels()] == ["setosa", "versicolor", "virginica"]


def test_missing_column_is_schema_mismatch(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="height")
    with pytest.raises(SchemaMismatch) as excinfo:
        renderer.render(spec, two_bars)
    assert isinstance(excinfo.value, KeyError)
    assert "height" in str(excinfo.value)


def test_missing_y_channel(renderer, two_bars):
    with pytest.raises(ValueError):
        renderer.render(ChartSpec(Geometry.LINE).encode(x="group"), two_bars)


def test_highlighted_bar_keeps_palette_color(renderer, iris):
    data, spec = get_recipe("bar4")(iris)
    ax = renderer.render(spec, data).axes[0]

    colors = [to_hex(patch.get_facecolor()) for patch in ax.patches]
    assert colors.count(to_hex(renderer.color_palette[0])) == 1
    assert colors.count(to_hex(renderer.muted_color)) == 2


def test_all_geometries_registered(renderer):
    assert renderer.chart_registry.registered() == sorted(g.value for g in Geometry)


def test_duplicate_registration_rejected(renderer):
    with pytest.raises(ValueError, match="already registered"):
        renderer.chart_registry.register(Geometry.BAR, lambda ax, spec, data: [])


def test_replacement_draw_function_is_used(renderer, two_bars):
    calls = []

    @renderer.chart_registry.register(Geometry.POINT, replace=True)
    def draw(ax, spec, data):
        calls.append(len(data))
        ax.plot(range(len(data)), data[spec.y])
        return []

    renderer.render(ChartSpec(Geometry.POINT).encode(x="group", y="value"), two_bars)
    assert calls == [2]


def test_unknown_geometry_rejected(renderer):
    assert "pie" not in renderer.chart_registry
    with pytest.raises(ValueError, match="No draw function"):
        renderer.chart_registry.render("pie")


def test_isolated_highlight_label_sits_at_terminal_point(renderer):
    dates = pd.date_range("2020-03-01", periods=3, freq="D")
    data = pd.DataFrame({"date": dates, "key": "a", "value": [0.0, 4.0, 10.0]})
    spec = (
        ChartSpec(Geometry.LINE)
        .encode(x="date", y="value", color="key")
        .with_highlight(Highlight.keys("a"))
        .limits(y=(0, 20))
    )
    ax = renderer.render(spec, data).axes[0]

    assert len(ax.texts) == 1
    assert ax.texts[0].get_position()[1] == pytest.approx(0.5)


def test_lower_pin_above_data_keeps_axis_increasing(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").limits(y=(10, None))
    ax = renderer.render(spec, two_bars).axes[0]

    lo, hi = ax.get_ylim()
    assert lo == 10
    assert lo < hi


def test_upper_pin_below_data_keeps_axis_increasing(renderer, two_bars):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").limits(y=(None, 2))
    ax = renderer.render(spec, two_bars).axes[0]

    lo, hi = ax.get_ylim()
    assert hi == 2
    assert lo < hi


def test_pin_excluding_data_is_logged(renderer, two_bars, caplog):
    spec = ChartSpec(Geometry.BAR).encode(x="group", y="value").limits(y=(10, None))
    with caplog.at_level("WARNING"):
        renderer.render(spec, two_bars)
    assert "exclude all data" in caplog.text
