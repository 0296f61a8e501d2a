#!/usr/bin/env python3
"""
Artifact Writer - Persists rendered figures and trims surrounding whitespace
"""

import os
import shutil
import subprocess
import tempfile
import warnings
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from PIL import Image, ImageChops

from .base_component import BaseComponent
from .exceptions import ArtifactWriteError, PostProcessUnavailable

RASTER_SUFFIXES = {'.png', '.jpg', '.jpeg', '.tif', '.tiff', '.webp'}


def trim_raster(path: Path, padding: int = 4) -> bool:
    """Crop uniform border color from a raster image in place; returns True if cropped."""
    with Image.open(path) as source:
        image = source.copy()
        info = dict(source.info)
    rgb = image.convert('RGB')
    background = Image.new('RGB', rgb.size, rgb.getpixel((0, 0)))
    bbox = ImageChops.difference(rgb, background).getbbox()
    if bbox is None or bbox == (0, 0) + rgb.size:
        return False

    left, top, right, bottom = bbox
    bbox = (
        max(left - padding, 0),
        max(top - padding, 0),
        min(right + padding, rgb.size[0]),
        min(bottom + padding, rgb.size[1]),
    )
    cropped = image.crop(bbox)
    save_kwargs = {'dpi': info['dpi']} if 'dpi' in info else {}
    cropped.save(path, **save_kwargs)
    return True


def trim_pdf(path: Path) -> None:
    """Crop a PDF in place with the external pdfcrop tool."""
    pdfcrop = shutil.which('pdfcrop')
    if pdfcrop is None:
        raise FileNotFoundError("pdfcrop executable not found on PATH")

    fd, tmp_name = tempfile.mkstemp(suffix='.pdf', dir=path.parent)
    os.close(fd)
    try:
        subprocess.run([pdfcrop, str(path), tmp_name], check=True, capture_output=True)
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


class ArtifactWriter(BaseComponent):
    """Writes figures to named files at a physical size."""

    def save(
        self,
        figure: Figure,
        filename: str,
        width: float,
        height: float,
        dpi: Optional[float] = None,
        trim: Optional[bool] = None,
    ) -> Path:
        """
        Save ``figure`` under the output directory and close it.

        Args:
            figure: Rendered figure
            filename: Target file name; the suffix selects the format
            width: Width in inches
            height: Height in inches
            dpi: Resolution for raster formats (defaults to visualization_defaults.dpi)
            trim: Trim surrounding whitespace (defaults to visualization_defaults.trim)

        Returns:
            Path of the written artifact.

        Raises:
            ArtifactWriteError: The target path is not writable.
        """
        output_file = Path(filename)
        if not output_file.is_absolute():
            output_file = self.output_dir / output_file

        if dpi is None:
            dpi = self.viz_defaults.get('dpi', 300)
        if trim is None:
            trim = self.viz_defaults.get('trim', True)

        try:
            figure.set_size_inches(width, height)
            figure.savefig(output_file, dpi=dpi, facecolor='white')
        except OSError as e:
            raise ArtifactWriteError(f"Could not write {output_file}: {e}") from e
        finally:
            plt.close(figure)

        self.logger.info(f"Chart saved: {output_file} ({width}x{height} in)")

        if trim:
            self.trim(output_file)
        return output_file

    def trim(self, path: Path) -> bool:
        """Best-effort whitespace trimming; warns and keeps the file untrimmed on failure."""
        suffix = path.suffix.lower()
        try:
            if suffix == '.pdf':
                trim_pdf(path)
                return True
            if suffix in RASTER_SUFFIXES:
                return trim_raster(path)
            reason = f"no trimming support for {suffix or 'files without suffix'}"
        except FileNotFoundError as e:
            reason = str(e)
        except (subprocess.CalledProcessError, OSError) as e:
            reason = f"trimming failed: {e}"

        message = f"Keeping untrimmed artifact {path.name}: {reason}"
        self.logger.warning(message)
        warnings.warn(message, PostProcessUnavailable, stacklevel=2)
        return False
