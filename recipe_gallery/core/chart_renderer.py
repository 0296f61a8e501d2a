#!/usr/bin/env python3
"""
Chart Renderer - Maps prepared rows and a ChartSpec to a matplotlib figure
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure
from matplotlib.ticker import AutoMinorLocator, NullLocator
from matplotlib.transforms import blended_transform_factory

from .base_component import BaseComponent
from .chart_registry import ChartRegistry
from .chart_spec import ChartSpec
from .constants import (
    CATEGORICAL_GEOMETRIES,
    DEFAULT_MUTED_COLOR,
    DEFAULT_PALETTE,
    Geometry,
    SERIES_GEOMETRIES,
    STAT_GEOMETRIES,
)
from .label_placement import LabelCandidate, place_labels
from .transforms import require_columns

# (group key, terminal x, terminal y, color) of a highlighted series
Terminal = Tuple[Any, Any, float, str]

MARKERS = ['o', 's', '^', 'D', 'v', 'P', 'X', '*']
STAT_AXIS_LABELS = {
    Geometry.HISTOGRAM: 'count',
    Geometry.DENSITY: 'density',
    Geometry.ECDF: 'proportion',
}


def _unique_in_order(values: pd.Series) -> List[Any]:
    return [value for value in pd.unique(values) if not pd.isna(value)]


def _as_plot_number(value: Any) -> Any:
    """Convert date-like x values to matplotlib date numbers for blended transforms."""
    if isinstance(value, (pd.Timestamp, datetime, date, np.datetime64)):
        return mdates.date2num(pd.Timestamp(value).to_pydatetime())
    return value


class ChartRenderer(BaseComponent):
    """Handles all chart drawing operations."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        data_directory: Optional[str] = None,
        output_directory: Optional[str] = None,
        context=None,
        config_override=None,
    ):
        super().__init__(config_file, data_directory, output_directory, context=context, config_override=config_override)
        self._setup_plotting()
        self._setup_color_scheme()
        self.chart_registry = ChartRegistry()
        self._register_default_geometries()

    def _register_default_geometries(self):
        """Register built-in draw functions."""
        self.chart_registry.register(Geometry.BAR, self._draw_bar)
        self.chart_registry.register(Geometry.BOX, self._draw_box)
        self.chart_registry.register(Geometry.VIOLIN, self._draw_violin)
        for geometry in SERIES_GEOMETRIES:
            self.chart_registry.register(geometry, self._draw_series)
        self.chart_registry.register(Geometry.HISTOGRAM, self._draw_histogram)
        self.chart_registry.register(Geometry.DENSITY, self._draw_density)
        self.chart_registry.register(Geometry.ECDF, self._draw_ecdf)

    def _setup_plotting(self):
        """Setup matplotlib for publication-quality charts."""
        viz_defaults = self.viz_defaults

        plt.rcParams['figure.dpi'] = viz_defaults.get('dpi', 300)
        plt.rcParams['savefig.dpi'] = viz_defaults.get('dpi', 300)
        plt.rcParams['font.family'] = viz_defaults.get('font_family', 'sans-serif')
        plt.rcParams['font.size'] = viz_defaults.get('font_size', 10)
        # Gridlines are configured per chart
        plt.rcParams['axes.grid'] = False
        plt.rcParams['grid.alpha'] = 0.3
        plt.rcParams['axes.spines.top'] = False
        plt.rcParams['axes.spines.right'] = False

    def _setup_color_scheme(self):
        """Setup consistent color scheme for all charts."""
        self.color_palette = list(self.viz_defaults.get('palette') or DEFAULT_PALETTE)
        self.muted_color = self.viz_defaults.get('muted_color', DEFAULT_MUTED_COLOR)

    def _get_colors(self, n_colors: int) -> List[str]:
        """Get n colors from the consistent palette."""
        if n_colors <= len(self.color_palette):
            return self.color_palette[:n_colors]
        # If we need more colors, cycle through the palette
        return [self.color_palette[i % len(self.color_palette)] for i in range(n_colors)]

    def _color_map(self, spec: ChartSpec, data: pd.DataFrame, column: Optional[str]) -> Dict[Any, str]:
        """Assign palette colors to group keys; muted color to keys failing the highlight."""
        if column is None:
            return {None: self.color_palette[0]}
        keys = _unique_in_order(data[column])
        if spec.highlight is None:
            return dict(zip(keys, self._get_colors(len(keys))))

        highlighted = [key for key in keys if spec.highlight.matches(key, data[data[column] == key])]
        colors = dict(zip(highlighted, self._get_colors(len(highlighted))))
        return {key: colors.get(key, self.muted_color) for key in keys}

    def _is_muted(self, spec: ChartSpec, color: str) -> bool:
        return spec.highlight is not None and color == self.muted_color

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def render(self, spec: ChartSpec, data: pd.DataFrame, figsize: Optional[Tuple[float, float]] = None) -> Figure:
        """
        Render ``data`` according to ``spec``.

        Args:
            spec: Chart specification
            data: Prepared rows carrying every column the spec references
            figsize: Optional (width, height) in inches; the writer resizes on save

        Returns:
            The matplotlib figure. Nothing is written to disk.
        """
        require_columns(data, spec.referenced_columns(), f"render {spec.geometry.value}")
        if spec.x is None:
            raise ValueError(f"{spec.geometry.value} chart requires an x channel")
        if spec.y is None and spec.geometry not in STAT_GEOMETRIES:
            raise ValueError(f"{spec.geometry.value} chart requires a y channel")

        fig, ax = plt.subplots(figsize=figsize or (6, 4), layout='constrained')
        terminals = self.chart_registry.render(spec.geometry, ax=ax, spec=spec, data=data)

        self._apply_limits(ax, spec, data)
        self._apply_labels(fig, ax, spec)
        self._apply_gridlines(ax, spec)
        self._apply_legend(ax, spec)
        self._apply_highlight_labels(ax, spec, terminals or [])

        self.logger.debug(f"Rendered {spec.geometry.value} chart from {len(data):,} rows")
        return fig

    # ------------------------------------------------------------------
    # Categorical geometries
    # ------------------------------------------------------------------

    def _set_category_ticks(self, ax, spec: ChartSpec, categories: List[Any]):
        positions = np.arange(len(categories))
        if spec.orientation_flip:
            ax.set_yticks(positions)
            ax.set_yticklabels([str(c) for c in categories])
            # First category on top, reading order matches the data
            ax.set_ylim(len(categories) - 0.5, -0.5)
        else:
            ax.set_xticks(positions)
            ax.set_xticklabels([str(c) for c in categories])
            ax.set_xlim(-0.5, len(categories) - 0.5)

    def _draw_bar(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        categories = _unique_in_order(data[spec.x])
        positions = {cat: i for i, cat in enumerate(categories)}
        fill = spec.fill
        fill_levels = _unique_in_order(data[fill]) if fill else [None]

        dodge = fill is not None and fill != spec.x and data.groupby(spec.x, sort=False)[fill].nunique().max() > 1
        width = 0.8 / len(fill_levels) if dodge else 0.8
        fill_colors = self._color_map(spec, data, fill)

        for level_index, level in enumerate(fill_levels):
            rows = data if level is None else data[data[fill] == level]
            offset = (level_index - (len(fill_levels) - 1) / 2) * width if dodge else 0.0
            pos = np.array([positions[cat] for cat in rows[spec.x]], dtype=float) + offset
            values = rows[spec.y].to_numpy(dtype=float)

            if spec.highlight is not None and fill is None:
                colors = [self.color_palette[0] if spec.highlight.matches(cat, rows[rows[spec.x] == cat]) else self.muted_color
                          for cat in rows[spec.x]]
            else:
                colors = fill_colors.get(level, self.color_palette[0])

            muted = isinstance(colors, str) and self._is_muted(spec, colors)
            label = str(level) if level is not None and not muted else '_nolegend_'
            bar = ax.barh if spec.orientation_flip else ax.bar
            bar(pos, values, width, color=colors,
                alpha=spec.alpha, edgecolor='black', linewidth=0.4, label=label, zorder=2)

            if spec.lower and spec.upper:
                lower = values - rows[spec.lower].to_numpy(dtype=float)
                upper = rows[spec.upper].to_numpy(dtype=float) - values
                err = np.vstack([lower, upper])
                if spec.orientation_flip:
                    ax.errorbar(values, pos, xerr=err, fmt='none', ecolor='black', elinewidth=0.8, capsize=3, zorder=3)
                else:
                    ax.errorbar(pos, values, yerr=err, fmt='none', ecolor='black', elinewidth=0.8, capsize=3, zorder=3)

        self._set_category_ticks(ax, spec, categories)
        return []

    def _category_values(self, spec: ChartSpec, data: pd.DataFrame):
        categories = _unique_in_order(data[spec.x])
        values = [data.loc[data[spec.x] == cat, spec.y].dropna().to_numpy(dtype=float) for cat in categories]
        return categories, values

    def _category_colors(self, spec: ChartSpec, data: pd.DataFrame, categories: List[Any]) -> List[str]:
        if spec.fill is None and spec.highlight is None:
            return [self.color_palette[0]] * len(categories)
        colors = self._color_map(spec, data, spec.fill or spec.x)
        if spec.fill and spec.fill != spec.x:
            # One fill per category: first fill value seen for that category
            first = data.drop_duplicates(spec.x).set_index(spec.x)[spec.fill]
            return [colors.get(first.get(cat), self.color_palette[0]) for cat in categories]
        return [colors.get(cat, self.color_palette[0]) for cat in categories]

    def _draw_points_overlay(self, ax, spec: ChartSpec, values: List[np.ndarray]):
        rng = np.random.default_rng(0)
        for i, vals in enumerate(values):
            jitter = i + rng.uniform(-0.15, 0.15, size=len(vals))
            if spec.orientation_flip:
                ax.scatter(vals, jitter, s=8, color='black', alpha=0.5, zorder=3)
            else:
                ax.scatter(jitter, vals, s=8, color='black', alpha=0.5, zorder=3)

    def _draw_box(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        categories, values = self._category_values(spec, data)
        colors = self._category_colors(spec, data, categories)

        box_plot = ax.boxplot(
            values,
            positions=np.arange(len(categories)),
            orientation='horizontal' if spec.orientation_flip else 'vertical',
            patch_artist=True,
            widths=0.6,
            showfliers=not spec.points,
            medianprops={'color': 'black'},
        )
        for patch, color in zip(box_plot['boxes'], colors):
            patch.set_facecolor(color)
            patch.set_alpha(0.8 * spec.alpha)

        if spec.points:
            self._draw_points_overlay(ax, spec, values)

        self._set_category_ticks(ax, spec, categories)
        return []

    def _draw_violin(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        categories, values = self._category_values(spec, data)
        keep = [i for i, vals in enumerate(values) if len(vals) > 1]
        if len(keep) < len(categories):
            self.logger.warning(f"Skipping {len(categories) - len(keep)} violin group(s) with fewer than two values")
        colors = self._category_colors(spec, data, categories)

        if keep:
            parts = ax.violinplot(
                [values[i] for i in keep],
                positions=keep,
                orientation='horizontal' if spec.orientation_flip else 'vertical',
                showmedians=True,
                widths=0.8,
            )
            for body, i in zip(parts['bodies'], keep):
                body.set_facecolor(colors[i])
                body.set_edgecolor('black')
                body.set_alpha(0.7 * spec.alpha)

        if spec.points:
            self._draw_points_overlay(ax, spec, values)

        self._set_category_ticks(ax, spec, categories)
        return []

    # ------------------------------------------------------------------
    # Series geometries (line, area, point, step)
    # ------------------------------------------------------------------

    def _draw_series(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        group_col = spec.group_channel
        colors = self._color_map(spec, data, group_col)
        keys = list(colors.keys())
        # Muted series first so highlighted ones are drawn on top
        keys.sort(key=lambda k: not self._is_muted(spec, colors[k]))

        terminals: List[Terminal] = []
        flip = spec.orientation_flip
        for key in keys:
            rows = data if key is None else data[data[group_col] == key]
            rows = rows.sort_values(spec.x, kind='mergesort')
            color = colors[key]
            muted = self._is_muted(spec, color)
            label = '_nolegend_' if key is None or muted else str(key)
            linewidth = 0.8 if muted else 1.6
            zorder = 1 if muted else 3
            xs, ys = rows[spec.x], rows[spec.y]
            px, py = (ys, xs) if flip else (xs, ys)

            if spec.geometry == Geometry.LINE:
                ax.plot(px, py, color=color, linewidth=linewidth, label=label, alpha=spec.alpha, zorder=zorder)
            elif spec.geometry == Geometry.STEP:
                ax.step(px, py, where='post', color=color, linewidth=linewidth, label=label, alpha=spec.alpha, zorder=zorder)
            elif spec.geometry == Geometry.AREA:
                if flip:
                    ax.fill_betweenx(xs, ys, color=color, alpha=0.5 * spec.alpha, label=label, zorder=zorder, linewidth=0)
                else:
                    ax.fill_between(xs, ys, color=color, alpha=0.5 * spec.alpha, label=label, zorder=zorder, linewidth=0)
                ax.plot(px, py, color=color, linewidth=linewidth * 0.6, zorder=zorder)
            else:
                self._draw_points(ax, spec, rows, color, label, zorder)

            if spec.highlight is not None and not muted and key is not None:
                defined = rows.dropna(subset=[spec.y])
                if len(defined):
                    last = defined.iloc[-1]
                    terminals.append((key, last[spec.x], float(last[spec.y]), color))

        if spec.highlight is not None and spec.highlight.label_series and terminals and not flip:
            # Leave room on the right for inline labels
            ax.set_xmargin(0.15)
        return terminals

    def _draw_points(self, ax, spec: ChartSpec, rows: pd.DataFrame, color: str, label: str, zorder: int):
        flip = spec.orientation_flip
        if spec.shape is None:
            px, py = (rows[spec.y], rows[spec.x]) if flip else (rows[spec.x], rows[spec.y])
            ax.scatter(px, py, color=color, s=14, label=label, alpha=spec.alpha, zorder=zorder)
            return
        for i, level in enumerate(_unique_in_order(rows[spec.shape])):
            subset = rows[rows[spec.shape] == level]
            px, py = (subset[spec.y], subset[spec.x]) if flip else (subset[spec.x], subset[spec.y])
            ax.scatter(px, py, color=color, s=14, marker=MARKERS[i % len(MARKERS)],
                       label=label if i == 0 else '_nolegend_', alpha=spec.alpha, zorder=zorder)

    # ------------------------------------------------------------------
    # Distribution geometries (histogram, density, ecdf)
    # ------------------------------------------------------------------

    def _distribution_groups(self, spec: ChartSpec, data: pd.DataFrame):
        group_col = spec.group_channel
        colors = self._color_map(spec, data, group_col)
        for key, color in colors.items():
            rows = data if key is None else data[data[group_col] == key]
            values = rows[spec.x].dropna().to_numpy(dtype=float)
            muted = self._is_muted(spec, color)
            label = '_nolegend_' if key is None or muted else str(key)
            yield key, values, color, label

    def _draw_histogram(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        all_values = data[spec.x].dropna().to_numpy(dtype=float)
        if len(all_values) == 0:
            return []
        edges = np.histogram_bin_edges(all_values, bins=spec.bins)
        groups = list(self._distribution_groups(spec, data))
        alpha = spec.alpha * (0.6 if len(groups) > 1 else 0.9)
        for _, values, color, label in groups:
            ax.hist(values, bins=edges, color=color, alpha=alpha, label=label, edgecolor='white', linewidth=0.4,
                    orientation='horizontal' if spec.orientation_flip else 'vertical', zorder=2)
        return []

    def _draw_density(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        for _, values, color, label in self._distribution_groups(spec, data):
            if len(np.unique(values)) < 2:
                self.logger.warning(f"Skipping density for {label}: fewer than two distinct values")
                continue
            axis_kw = {'y': values} if spec.orientation_flip else {'x': values}
            sns.kdeplot(ax=ax, color=color, label=label, fill=True, alpha=0.3 * spec.alpha, linewidth=1.2, **axis_kw)
        return []

    def _draw_ecdf(self, ax, spec: ChartSpec, data: pd.DataFrame) -> List[Terminal]:
        for _, values, color, label in self._distribution_groups(spec, data):
            if len(values) == 0:
                continue
            axis_kw = {'y': values} if spec.orientation_flip else {'x': values}
            sns.ecdfplot(ax=ax, color=color, label=label, alpha=spec.alpha, linewidth=1.4, **axis_kw)
        return []

    # ------------------------------------------------------------------
    # Axes decoration
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_bounds(pinned, data_min: float, data_max: float) -> Tuple[float, float]:
        """
        Pinned bounds are exact; auto-scaled sides get a 5% expansion.

        An auto-scaled side never crosses the opposite pin, so a lower pin
        above the data still yields an increasing axis.
        """
        lo_pin, hi_pin = pinned
        lo = float(lo_pin) if lo_pin is not None else min(data_min, float(hi_pin) if hi_pin is not None else data_min)
        hi = float(hi_pin) if hi_pin is not None else max(data_max, float(lo_pin) if lo_pin is not None else data_max)
        span = hi - lo
        if span <= 0:
            span = abs(hi) or 1.0
        if lo_pin is None:
            lo -= 0.05 * span
        if hi_pin is None:
            hi += 0.05 * span
        return lo, hi

    def _apply_limits(self, ax, spec: ChartSpec, data: pd.DataFrame):
        flip = spec.orientation_flip
        set_value_lim = ax.set_xlim if flip else ax.set_ylim
        set_other_lim = ax.set_ylim if flip else ax.set_xlim

        if spec.geometry in STAT_GEOMETRIES:
            # x is the distribution variable, y the computed statistic; only pinned bounds apply
            if any(b is not None for b in spec.xlim):
                set_other_lim(*spec.xlim)
            if any(b is not None for b in spec.ylim):
                set_value_lim(*spec.ylim)
            return

        value_columns = [col for col in (spec.y, spec.lower, spec.upper) if col]
        values = pd.concat([pd.to_numeric(data[col], errors='coerce') for col in value_columns]).dropna() if len(data) else pd.Series(dtype=float)
        if len(values):
            data_min, data_max = float(values.min()), float(values.max())
            lo_pin, hi_pin = spec.ylim
            if (lo_pin is not None and lo_pin > data_max) or (hi_pin is not None and hi_pin < data_min):
                self.logger.warning(f"Pinned value bounds {spec.ylim} exclude all data in [{data_min:g}, {data_max:g}]")
            set_value_lim(*self._resolve_bounds(spec.ylim, data_min, data_max))
        elif any(b is not None for b in spec.ylim):
            set_value_lim(*spec.ylim)

        if spec.geometry not in CATEGORICAL_GEOMETRIES and any(b is not None for b in spec.xlim):
            set_other_lim(*spec.xlim)

    def _apply_labels(self, fig, ax, spec: ChartSpec):
        labels = spec.labels
        x_label = spec.x if labels.x is None else labels.x
        if labels.y is not None:
            y_label = labels.y
        elif spec.geometry in STAT_GEOMETRIES:
            y_label = STAT_AXIS_LABELS[spec.geometry]
        else:
            y_label = spec.y

        if spec.orientation_flip:
            ax.set_xlabel(y_label or '')
            ax.set_ylabel(x_label or '')
        else:
            ax.set_xlabel(x_label or '')
            ax.set_ylabel(y_label or '')

        if labels.title:
            ax.set_title(labels.title, fontsize=12, fontweight='normal')
        if labels.caption:
            fig.text(0.99, 0.01, labels.caption, ha='right', va='bottom', fontsize=8, color='#555555')

    def _apply_gridlines(self, ax, spec: ChartSpec):
        gridlines = spec.gridlines
        ax.grid(False, which='both')
        for name, axis in (('x', ax.xaxis), ('y', ax.yaxis)):
            if name in gridlines.minor:
                axis.set_minor_locator(AutoMinorLocator())
                ax.grid(True, which='minor', axis=name, alpha=0.15, linewidth=0.5)
            else:
                axis.set_minor_locator(NullLocator())
            if name in gridlines.major:
                ax.grid(True, which='major', axis=name, alpha=0.35, linewidth=0.8)
        ax.set_axisbelow(True)

    def _apply_legend(self, ax, spec: ChartSpec):
        handles, labels = ax.get_legend_handles_labels()
        position = spec.legend_position
        if position == 'none' or not handles:
            legend = ax.get_legend()
            if legend is not None:
                legend.remove()
            return

        title = spec.group_channel
        if position == 'bottom':
            ax.legend(handles, labels, title=title, loc='upper center', bbox_to_anchor=(0.5, -0.18),
                      ncol=min(len(handles), 5), frameon=False)
        elif position == 'top':
            ax.legend(handles, labels, title=title, loc='lower center', bbox_to_anchor=(0.5, 1.02),
                      ncol=min(len(handles), 5), frameon=False)
        elif position == 'left':
            ax.legend(handles, labels, title=title, loc='center right', bbox_to_anchor=(-0.15, 0.5), frameon=False)
        elif position == 'right':
            ax.legend(handles, labels, title=title, loc='center left', bbox_to_anchor=(1.02, 0.5), frameon=False)
        else:
            ax.legend(handles, labels, title=title, loc='best', frameon=False)

    def _apply_highlight_labels(self, ax, spec: ChartSpec, terminals: List[Terminal]):
        """Label highlighted series at their terminal point, resolving collisions."""
        if spec.highlight is None or not spec.highlight.label_series or not terminals:
            return
        if spec.orientation_flip:
            # Inline labels follow the vertical value axis only
            return

        y_lo, y_hi = ax.get_ylim()
        span = (y_hi - y_lo) or 1.0
        candidates = []
        colors = {}
        for key, x, y, color in terminals:
            anchor = min(max((y - y_lo) / span, 0.0), 1.0)
            candidates.append(LabelCandidate(text=str(key), anchor=anchor, priority=y, x=_as_plot_number(x)))
            colors[str(key)] = color

        gap = float(self.viz_defaults.get('label_gap', 0.05))
        placed = place_labels(candidates, min_gap=gap)
        dropped = len(candidates) - len(placed)
        if dropped:
            self.logger.info(f"Dropped {dropped} overlapping highlight label(s)")

        transform = blended_transform_factory(ax.transData, ax.transAxes)
        for label in placed:
            ax.text(label.x, label.position, f" {label.text}", transform=transform, ha='left', va='center',
                    fontsize=9, color=colors[label.text], clip_on=False)
