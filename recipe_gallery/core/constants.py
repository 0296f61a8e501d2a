"""
Core constants and identifiers used across the recipe gallery.

Centralizing these values avoids hardcoded strings scattered throughout
the codebase and makes it easier to extend with new config keys or geometries.
"""

from enum import Enum

# Configuration keys
CONFIG_KEY_DATASETS = "datasets"
CONFIG_KEY_RECIPES = "recipes"
CONFIG_KEY_OUTPUT_DIR = "output_directory"
CONFIG_KEY_VIZ_DEFAULTS = "visualization_defaults"
CONFIG_KEY_DATA_QUALITY = "data_quality_checks"
CONFIG_KEY_SIMULATION = "simulation"
CONFIG_KEY_LOGGING = "logging"

# Dataset names
IRIS_DATASET = "iris"
CASES_DATASET = "cases"

# Auxiliary config filenames (without extension)
GLOBAL_DEFAULTS_STEM = "global_defaults"

# Output filenames
MANIFEST_FILE = "gallery_manifest.json"
TEXT_REPORT_FILE = "gallery_report.txt"

# Canonical column names
IRIS_MEASUREMENTS = ["sepal_length", "sepal_width", "petal_length", "petal_width"]
CASE_COLUMNS = ["date", "country", "type", "cases"]

# Countries of the offline case-count table when the config lists none
DEFAULT_SIMULATED_COUNTRIES = ["Austria", "Czechia", "Germany", "Italy", "Slovakia", "Spain"]

# Fallback palette when global defaults do not provide one
DEFAULT_PALETTE = [
    '#1f77b4',  # blue
    '#ff7f0e',  # orange
    '#2ca02c',  # green
    '#d62728',  # red
    '#9467bd',  # purple
    '#8c564b',  # brown
    '#e377c2',  # pink
    '#7f7f7f',  # gray
    '#bcbd22',  # olive
    '#17becf',  # cyan
]
DEFAULT_MUTED_COLOR = "#d3d3d3"


class Geometry(str, Enum):
    """Geometry identifiers for registry-based rendering."""
    BAR = "bar"
    BOX = "box"
    LINE = "line"
    AREA = "area"
    POINT = "point"
    VIOLIN = "violin"
    HISTOGRAM = "histogram"
    DENSITY = "density"
    STEP = "step"
    ECDF = "ecdf"


# Geometries that compute their own distribution statistic from a single column
STAT_GEOMETRIES = {Geometry.HISTOGRAM, Geometry.DENSITY, Geometry.ECDF}

# Geometries drawn as one connected series per color group
SERIES_GEOMETRIES = {Geometry.LINE, Geometry.AREA, Geometry.POINT, Geometry.STEP}

# Geometries with a categorical x channel
CATEGORICAL_GEOMETRIES = {Geometry.BAR, Geometry.BOX, Geometry.VIOLIN}

LEGEND_POSITIONS = ("none", "bottom", "top", "left", "right", "inside")
