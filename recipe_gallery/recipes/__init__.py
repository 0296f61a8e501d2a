"""
Recipe definitions.

A recipe is a function taking its source dataset and returning the prepared
rows together with the ChartSpec that renders them. Recipes register
themselves by name with ``register_recipe``.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import pandas as pd

from ..core.chart_spec import ChartSpec

RecipeFunction = Callable[[pd.DataFrame], Tuple[pd.DataFrame, ChartSpec]]


@dataclass(frozen=True)
class Recipe:
    name: str
    dataset: str
    title: str
    build: RecipeFunction

    def __call__(self, data: pd.DataFrame) -> Tuple[pd.DataFrame, ChartSpec]:
        return self.build(data)


RECIPE_REGISTRY: Dict[str, Recipe] = {}


def register_recipe(name: str, dataset: str, title: str):
    """Decorator registering a recipe function under ``name``."""
    def decorator(func: RecipeFunction) -> RecipeFunction:
        if name in RECIPE_REGISTRY:
            raise ValueError(f"Recipe already registered: {name}")
        RECIPE_REGISTRY[name] = Recipe(name=name, dataset=dataset, title=title, build=func)
        return func
    return decorator


def get_recipe(name: str) -> Recipe:
    if name not in RECIPE_REGISTRY:
        raise ValueError(f"Unknown recipe '{name}'. Available: {', '.join(recipe_names())}")
    return RECIPE_REGISTRY[name]


def recipe_names() -> List[str]:
    return list(RECIPE_REGISTRY)


# Importing the modules registers their recipes
from . import bar, box, line, distribution  # noqa: E402,F401
