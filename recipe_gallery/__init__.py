"""
Recipe Gallery
Annotated chart recipes demonstrating visualization best practices.
"""

__version__ = "1.0.0"

# Import main classes for easy access
from .gallery import RecipeGallery
from .core.chart_renderer import ChartRenderer
from .core.chart_spec import ChartSpec, Highlight
from .core.artifact_writer import ArtifactWriter
from .core.constants import Geometry
from .core.data_loader import DataLoader
from .core.exceptions import ArtifactWriteError, PostProcessUnavailable, SchemaMismatch
from .core.report_generator import ReportGenerator

__all__ = [
    'RecipeGallery',
    'ChartRenderer',
    'ChartSpec',
    'Highlight',
    'ArtifactWriter',
    'Geometry',
    'DataLoader',
    'ArtifactWriteError',
    'PostProcessUnavailable',
    'SchemaMismatch',
    'ReportGenerator',
]
