#!/usr/bin/env python3
"""
Main Recipe Gallery - Orchestrates loading, preparation, rendering and persistence
"""

import sys
import warnings
from pathlib import Path
from typing import Dict, Any, Iterable, List, Optional

from .core.artifact_writer import ArtifactWriter
from .core.base_component import GalleryContext
from .core.chart_renderer import ChartRenderer
from .core.constants import CONFIG_KEY_RECIPES
from .core.data_loader import DataLoader
from .core.report_generator import RecipeOutcome, ReportGenerator
from .recipes import get_recipe, recipe_names


class RecipeGallery:
    """
    Main gallery class that orchestrates all recipe components.

    Each recipe runs in isolation: a failure is logged and recorded in the
    manifest, and the remaining recipes still run.
    """

    def __init__(self, config_file: Optional[str] = None, data_directory: Optional[str] = None,
                 output_directory: Optional[str] = None, config_override: Optional[Dict[str, Any]] = None):
        """
        Initialize the recipe gallery.

        Args:
            config_file: Path to the gallery configuration (YAML or JSON); defaults to the bundled config
            data_directory: Directory containing dataset files (default: the config's directory)
            output_directory: Directory for rendered charts (default: ./output)
            config_override: Values deep-merged into the loaded configuration
        """
        # Initialize loader first to build shared context (config, logging, paths)
        self.data_loader = DataLoader(config_file, data_directory, output_directory, config_override=config_override)
        shared_ctx: GalleryContext = self.data_loader.context

        self.renderer = ChartRenderer(context=shared_ctx)
        self.writer = ArtifactWriter(context=shared_ctx)
        self.report_generator = ReportGenerator(context=shared_ctx)

        self.config = self.data_loader.config
        self.logger = self.data_loader.logger
        self.output_dir = self.data_loader.output_dir

        self.logger.info(f"Gallery initialized: {self.data_loader.get_gallery_name()}")

    def recipe_settings(self, name: str) -> Dict[str, Any]:
        """Output settings for a recipe with defaults filled in."""
        settings = {'enabled': True, 'filename': f"{name}.pdf", 'width': 6, 'height': 4, 'dpi': None, 'trim': None}
        settings.update(self.config.get(CONFIG_KEY_RECIPES, {}).get(name) or {})
        return settings

    def enabled_recipes(self) -> List[str]:
        configured = self.config.get(CONFIG_KEY_RECIPES)
        if not configured:
            return recipe_names()
        return [name for name in configured if self.recipe_settings(name)['enabled']]

    def prepare(self, name: str):
        """Load the recipe's dataset and return (prepared rows, spec)."""
        recipe = get_recipe(name)
        dataset = self.data_loader.load_dataset(recipe.dataset)
        return recipe(dataset)

    def run_recipe(self, name: str) -> Path:
        """Prepare, render and persist one recipe; errors propagate to the caller."""
        return self._execute(name)[0]

    def _execute(self, name: str):
        settings = self.recipe_settings(name)
        prepared, spec = self.prepare(name)
        figure = self.renderer.render(spec, prepared, figsize=(settings['width'], settings['height']))
        artifact = self.writer.save(
            figure,
            settings['filename'],
            width=settings['width'],
            height=settings['height'],
            dpi=settings['dpi'],
            trim=settings['trim'],
        )
        return artifact, len(prepared)

    def run(self, names: Optional[Iterable[str]] = None) -> List[RecipeOutcome]:
        """Run the given recipes (default: all enabled) and write the manifest and report."""
        names = list(names) if names else self.enabled_recipes()
        self.logger.info(f"Running {len(names)} recipes")

        outcomes = [self._run_isolated(name) for name in names]

        manifest = self.report_generator.build_manifest(outcomes, self.data_loader.get_dataset_summary())
        self.report_generator.save_manifest_json(manifest)
        self.report_generator.generate_text_report(manifest)

        failed = [o.name for o in outcomes if not o.succeeded]
        self.logger.info(f"Gallery completed: {len(outcomes) - len(failed)} charts written, {len(failed)} failed")
        if failed:
            self.logger.warning(f"Failed recipes: {', '.join(failed)}")
        return outcomes

    def _run_isolated(self, name: str) -> RecipeOutcome:
        try:
            recipe = get_recipe(name)
        except ValueError as e:
            self.logger.error(str(e))
            return RecipeOutcome(name=name, status="failed", error=str(e))

        outcome = RecipeOutcome(name=name, status="failed", title=recipe.title)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                artifact, prepared_rows = self._execute(name)
                outcome.status = "ok"
                outcome.artifact = str(artifact)
                outcome.rows = prepared_rows
            except Exception as e:
                self.logger.error(f"Recipe {name} failed: {type(e).__name__}: {e}")
                outcome.error = f"{type(e).__name__}: {e}"
        outcome.warnings = [str(w.message) for w in caught]
        return outcome


# Main execution function
def main(argv: Optional[List[str]] = None):
    """
    Command line entry point.

    Usage: recipe-gallery [config_file] [output_directory] [recipe ...]
    """
    args = list(sys.argv[1:] if argv is None else argv)

    if args and args[0] in ('-h', '--help'):
        print("Usage: recipe-gallery [config_file] [output_directory] [recipe ...]")
        print(f"Recipes: {', '.join(recipe_names())}")
        return 0

    config_file = args[0] if len(args) > 0 and args[0] != '-' else None
    output_directory = args[1] if len(args) > 1 and args[1] != '-' else None
    names = args[2:] or None

    gallery = RecipeGallery(config_file, output_directory=output_directory)
    outcomes = gallery.run(names)
    return 0 if all(o.succeeded for o in outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
