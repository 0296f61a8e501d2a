#!/usr/bin/env python3
"""
Base Component Class - Configuration, directories and logging shared by every gallery component
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .constants import (
    CONFIG_KEY_LOGGING,
    CONFIG_KEY_OUTPUT_DIR,
    CONFIG_KEY_VIZ_DEFAULTS,
    GLOBAL_DEFAULTS_STEM,
)

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "configs" / "gallery.yaml"
CONFIG_SUFFIXES = ('.yaml', '.yml', '.json')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class GalleryContext:
    """State resolved once by the first component and handed to the others."""
    config_file: Path
    data_dir: Path
    output_dir: Path
    gallery_name: str
    config: Dict[str, Any]
    global_defaults: Dict[str, Any]
    logger: logging.Logger


def merge_config(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` in place and return ``base``."""
    for key, value in (override or {}).items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_config(current, value)
        else:
            base[key] = value
    return base


def load_any_config(path: Path) -> Dict[str, Any]:
    """
    Read a configuration mapping from YAML (``.yaml``/``.yml``) or JSON.

    Raises:
        FileNotFoundError: ``path`` does not exist
        ValueError: the file cannot be parsed
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    is_yaml = path.suffix.lower() in ('.yaml', '.yml')
    with open(path, 'r', encoding='utf-8') as f:
        try:
            loaded = yaml.safe_load(f) if is_yaml else json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            kind = "YAML" if is_yaml else "JSON"
            raise ValueError(f"Invalid {kind} in configuration file {path}: {e}") from e
    return loaded or {}


class BaseComponent:
    """
    Base class for gallery components.

    A standalone component loads its configuration, resolves its directories
    and sets up logging. Components created with ``context=`` share the
    state of the component that built the context instead.
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        data_directory: Optional[str] = None,
        output_directory: Optional[str] = None,
        context: Optional[GalleryContext] = None,
        config_override: Optional[Dict[str, Any]] = None,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)

        if context is not None:
            self._apply_context(context)
            return

        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
        self.config = merge_config(load_any_config(self.config_file), config_override)
        self.gallery_name = str(self.config.get('gallery_name') or self.config_file.stem)

        self.data_dir, self.output_dir = self._resolve_directories(data_directory, output_directory)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.global_defaults = self._load_global_defaults()
        self.logger = self._setup_logging()
        self.logger.info(f"Loaded configuration from {self.config_file}")

        self.context = GalleryContext(
            config_file=self.config_file,
            data_dir=self.data_dir,
            output_dir=self.output_dir,
            gallery_name=self.gallery_name,
            config=self.config,
            global_defaults=self.global_defaults,
            logger=self.logger,
        )

    def _apply_context(self, context: GalleryContext):
        self.context = context
        self.config_file = context.config_file
        self.data_dir = context.data_dir
        self.output_dir = context.output_dir
        self.gallery_name = context.gallery_name
        self.config = context.config
        self.global_defaults = context.global_defaults
        self.logger = context.logger

    def _setup_logging(self) -> logging.Logger:
        """Log to a timestamped file under the output directory and to the console."""
        log_settings = self.global_defaults.get(CONFIG_KEY_LOGGING, {})
        level = getattr(logging, str(log_settings.get('level', 'INFO')).upper(), logging.INFO)

        log_dir = self.output_dir / log_settings.get('directory', 'logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"gallery_{datetime.now():%Y%m%d_%H%M%S}.log"

        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
        )
        return logging.getLogger(self.__class__.__name__)

    def _resolve_directories(self, data_directory: Optional[str], output_directory: Optional[str]) -> Tuple[Path, Path]:
        """
        Data files are looked up next to the config unless ``data_directory``
        (argument or config key) says otherwise. Relative output directories
        from the config are taken relative to the working directory.
        """
        config_dir = self.config_file.parent

        if data_directory:
            data_dir = Path(data_directory).expanduser().resolve()
        elif self.config.get('data_directory'):
            data_dir = (config_dir / Path(self.config['data_directory']).expanduser()).resolve()
        else:
            data_dir = config_dir

        if output_directory:
            output_dir = Path(output_directory).expanduser()
        else:
            output_dir = Path(self.config.get(CONFIG_KEY_OUTPUT_DIR) or "output").expanduser()
            if not output_dir.is_absolute():
                output_dir = Path.cwd() / output_dir
        return data_dir, output_dir

    def _load_global_defaults(self) -> Dict[str, Any]:
        """
        Read ``global_defaults.{yaml,yml,json}`` from the config directory,
        then apply the gallery config's own ``global_defaults`` block on top.
        """
        defaults: Dict[str, Any] = {}
        candidates = [self.config_file.parent / f"{GLOBAL_DEFAULTS_STEM}{suffix}" for suffix in CONFIG_SUFFIXES]
        found = next((candidate for candidate in candidates if candidate.is_file()), None)
        if found is not None:
            try:
                loaded = load_any_config(found)
                defaults = loaded.get(GLOBAL_DEFAULTS_STEM, loaded)
            except (OSError, ValueError) as e:
                self.logger.warning(f"Could not load global defaults from {found}: {e}")

        return merge_config(defaults, self.config.get(GLOBAL_DEFAULTS_STEM))

    @property
    def viz_defaults(self) -> Dict[str, Any]:
        return self.global_defaults.get(CONFIG_KEY_VIZ_DEFAULTS, {})

    def get_gallery_name(self) -> str:
        return self.gallery_name or 'Unknown Gallery'
