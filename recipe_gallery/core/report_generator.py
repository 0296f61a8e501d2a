#!/usr/bin/env python3
"""
Report Generator - Writes the run manifest and a text summary of a gallery run
"""

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Any, Optional

from .base_component import BaseComponent
from .constants import MANIFEST_FILE, TEXT_REPORT_FILE


@dataclass
class RecipeOutcome:
    """Result of running one recipe."""
    name: str
    status: str
    title: str = ""
    artifact: Optional[str] = None
    rows: int = 0
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "ok"


class ReportGenerator(BaseComponent):
    """Handles manifest and summary report generation."""

    def build_manifest(self, outcomes: List[RecipeOutcome], dataset_summary: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Collect run metadata, the loader's dataset summary and per-recipe outcomes."""
        return {
            'gallery_name': self.get_gallery_name(),
            'run_date': datetime.now().isoformat(),
            'output_directory': str(self.output_dir),
            'datasets': dict(dataset_summary or {}),
            'recipes': [asdict(outcome) for outcome in outcomes],
            'succeeded': sum(1 for o in outcomes if o.succeeded),
            'failed': sum(1 for o in outcomes if not o.succeeded),
        }

    def save_manifest_json(self, manifest: Dict[str, Any]) -> Optional[Path]:
        """Save the run manifest to JSON."""
        manifest_file = self.output_dir / MANIFEST_FILE
        try:
            with open(manifest_file, 'w', encoding='utf-8') as f:
                json.dump(manifest, f, indent=2)
            self.logger.info(f"Manifest saved to: {manifest_file}")
            return manifest_file
        except OSError as e:
            self.logger.error(f"Failed to save manifest: {e}")
            return None

    def generate_text_report(self, manifest: Dict[str, Any]) -> Optional[Path]:
        """Generate a plain-text summary of the run."""
        lines = [
            "Recipe Gallery Report",
            "=============================================================",
            f"Gallery: {manifest.get('gallery_name', 'Unknown')}",
            f"Run Date: {manifest.get('run_date', 'Unknown')}",
            f"Output: {manifest.get('output_directory', '')}",
            "",
        ]

        datasets = manifest.get('datasets', {})
        if datasets:
            lines.append("DATASETS:")
            for dataset_name, info in datasets.items():
                lines.append(f"  {dataset_name}: {info['total_records']:,} records, {len(info['columns'])} columns, {info['missing_values']:,} missing values")
            lines.append("")

        lines.append(f"RECIPES ({manifest.get('succeeded', 0)} succeeded, {manifest.get('failed', 0)} failed):")
        for recipe in manifest.get('recipes', []):
            if recipe['status'] == 'ok':
                lines.append(f"  [ok]     {recipe['name']:<8} {recipe['artifact']} ({recipe['rows']:,} rows) {recipe['title']}")
            else:
                lines.append(f"  [failed] {recipe['name']:<8} {recipe['error']}")
            for warning in recipe.get('warnings', []):
                lines.append(f"           warning: {warning}")

        report_file = self.output_dir / TEXT_REPORT_FILE
        try:
            with open(report_file, 'w', encoding='utf-8') as f:
                f.write("\n".join(lines) + "\n")
            self.logger.info(f"Report saved to: {report_file}")
        except OSError as e:
            self.logger.error(f"Failed to save report: {e}")
            return None

        return report_file
