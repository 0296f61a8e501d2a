#!/usr/bin/env python3
"""
Core module for the recipe gallery.
Contains the modular components for data loading, preparation, rendering, persistence and reporting.
"""

from .base_component import BaseComponent, GalleryContext
from .data_loader import DataLoader
from .chart_spec import ChartSpec, Gridlines, Highlight, Labels
from .chart_renderer import ChartRenderer
from .artifact_writer import ArtifactWriter
from .report_generator import RecipeOutcome, ReportGenerator
from .chart_registry import ChartRegistry
from .constants import Geometry
from .exceptions import ArtifactWriteError, GalleryError, PostProcessUnavailable, SchemaMismatch

__all__ = [
    'BaseComponent',
    'GalleryContext',
    'DataLoader',
    'ChartSpec',
    'Gridlines',
    'Highlight',
    'Labels',
    'ChartRenderer',
    'ArtifactWriter',
    'RecipeOutcome',
    'ReportGenerator',
    'ChartRegistry',
    'Geometry',
    'ArtifactWriteError',
    'GalleryError',
    'PostProcessUnavailable',
    'SchemaMismatch',
]
