"""End-to-end tests for RecipeGallery runs and the recipe registry."""

import json

import pytest

from recipe_gallery.core.chart_spec import ChartSpec
from recipe_gallery.core.constants import CASES_DATASET, Geometry, IRIS_DATASET, MANIFEST_FILE, TEXT_REPORT_FILE
from recipe_gallery.gallery import RecipeGallery, main
from recipe_gallery.recipes import RECIPE_REGISTRY, Recipe, get_recipe, recipe_names, register_recipe

PNG_OVERRIDES = {"dpi": 50, "trim": False, "width": 3, "height": 2}


def _png_config(*names):
    return {"recipes": {name: dict(PNG_OVERRIDES, filename=f"{name}.png") for name in names}}


def test_all_recipes_registered():
    expected = {f"bar{i}" for i in range(1, 5)} | {"box1", "box2"} | {f"line{i}" for i in range(1, 5)} | {f"dist{i}" for i in range(1, 6)}
    assert set(recipe_names()) == expected


def test_duplicate_recipe_rejected():
    with pytest.raises(ValueError):
        register_recipe("bar1", IRIS_DATASET, "Duplicate")(lambda df: None)


def test_unknown_recipe_lookup():
    with pytest.raises(ValueError, match="Unknown recipe"):
        get_recipe("pie1")


@pytest.mark.parametrize("name", recipe_names())
def test_recipe_renders(name, renderer, iris, cases):
    recipe = get_recipe(name)
    source = iris if recipe.dataset == IRIS_DATASET else cases
    prepared, spec = recipe(source)

    assert not prepared.empty
    assert set(spec.referenced_columns()) <= set(prepared.columns)
    fig = renderer.render(spec, prepared)
    assert len(fig.axes) == 1


def test_recipes_do_not_mutate_source(iris, cases):
    iris_before, cases_before = iris.copy(), cases.copy()
    for name in recipe_names():
        recipe = get_recipe(name)
        recipe(iris if recipe.dataset == IRIS_DATASET else cases)
    assert iris.equals(iris_before)
    assert cases.equals(cases_before)


def test_run_writes_artifacts_and_manifest(tmp_path):
    gallery = RecipeGallery(output_directory=str(tmp_path), config_override=_png_config("bar1", "line1"))
    outcomes = gallery.run(["bar1", "line1"])

    assert [o.status for o in outcomes] == ["ok", "ok"]
    assert (tmp_path / "bar1.png").exists()
    assert (tmp_path / "line1.png").exists()
    assert outcomes[0].rows == 3

    manifest = json.loads((tmp_path / MANIFEST_FILE).read_text(encoding="utf-8"))
    assert manifest["succeeded"] == 2
    assert manifest["failed"] == 0
    assert set(manifest["datasets"]) == {IRIS_DATASET, CASES_DATASET}
    assert "bar1" in (tmp_path / TEXT_REPORT_FILE).read_text(encoding="utf-8")


def test_failed_recipe_does_not_stop_run(tmp_path, monkeypatch):
    def broken(iris):
        return iris, ChartSpec(Geometry.BAR).encode(x="species", y="stem_length")

    monkeypatch.setitem(RECIPE_REGISTRY, "broken", Recipe("broken", IRIS_DATASET, "Broken recipe", broken))
    gallery = RecipeGallery(output_directory=str(tmp_path), config_override=_png_config("bar1"))
    outcomes = {o.name: o for o in gallery.run(["broken", "bar1"])}

    assert outcomes["broken"].status == "failed"
    assert outcomes["broken"].error.startswith("SchemaMismatch")
    assert "stem_length" in outcomes["broken"].error
    assert outcomes["bar1"].succeeded
    assert (tmp_path / "bar1.png").exists()


def test_unknown_recipe_recorded_as_failure(tmp_path):
    gallery = RecipeGallery(output_directory=str(tmp_path))
    outcomes = gallery.run(["pie1"])

    assert len(outcomes) == 1
    assert not outcomes[0].succeeded
    assert "Unknown recipe" in outcomes[0].error


def test_disabled_recipes_are_skipped(tmp_path):
    gallery = RecipeGallery(output_directory=str(tmp_path), config_override={"recipes": {"bar2": {"enabled": False}}})
    enabled = gallery.enabled_recipes()

    assert "bar2" not in enabled
    assert "bar1" in enabled


def test_recipe_settings_defaults(tmp_path):
    gallery = RecipeGallery(output_directory=str(tmp_path), config_override={"recipes": {"extra": {"width": 5}}})
    settings = gallery.recipe_settings("extra")

    assert settings["filename"] == "extra.pdf"
    assert settings["width"] == 5
    assert settings["height"] == 4


def test_main_help(capsys):
    assert main(["--help"]) == 0
    assert "Usage" in capsys.readouterr().out


def test_main_runs_named_recipes(tmp_path):
    assert main(["-", str(tmp_path), "dist1"]) == 0
    assert (tmp_path / "dist1.pdf").exists()
    assert (tmp_path / MANIFEST_FILE).exists()


def test_run_recipe_propagates_errors(tmp_path, monkeypatch):
    gallery = RecipeGallery(output_directory=str(tmp_path), config_override=_png_config("dist4"))
    assert gallery.run_recipe("dist4") == tmp_path / "dist4.png"

    monkeypatch.setitem(RECIPE_REGISTRY, "broken", Recipe("broken", IRIS_DATASET, "Broken recipe", lambda iris: 1 / 0))
    with pytest.raises(ZeroDivisionError):
        gallery.run_recipe("broken")
