"""Shared pytest fixtures for tilefilter tests."""
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from tilefilter.core.constants import GeometryType, StringMatch
from tilefilter.infrastructure import logger as logger_module
from tilefilter.rules.description import (
    FeatureFilterDescription,
    FeatureFilterDescriptionBuilder,
)


@pytest.fixture
def builder() -> FeatureFilterDescriptionBuilder:
    """Builder with all defaults left at True."""
    return FeatureFilterDescriptionBuilder()


@pytest.fixture
def sample_rules() -> Dict[str, Any]:
    """Provide a sample declarative rule set."""
    return {
        "tilefilter": {
            "defaults": {
                "process_layers": True,
                "process_points": False,
                "process_lines": True,
                "process_polygons": True,
            },
            "layers": {
                "process": [{"name": "water", "min_level": 4, "max_level": 8}],
                "ignore": [{"name": "admin", "match": "starts_with"}],
            },
            "points": {
                "process": [
                    {"layer": "poi", "geometry_types": ["point"], "feature_class": "bar"}
                ],
            },
            "lines": {
                "ignore": [
                    {"layer": "road", "feature_attribute": {"key": "state", "value": "closed"}}
                ],
            },
            "polygons": {
                "process": [
                    {
                        "layer": "landuse",
                        "geometry_types": ["polygon"],
                        "feature_classes": ["park", {"value": "wood", "match": "starts_with"}],
                    }
                ],
            },
            "kinds": {
                "process": ["water"],
                "ignore": ["building"],
            },
        }
    }


@pytest.fixture
def rules_file(tmp_path: Path, sample_rules: Dict[str, Any]) -> Path:
    """Write the sample rule set to a YAML file."""
    path = tmp_path / "rules.yaml"
    with open(path, "w") as f:
        yaml.dump(sample_rules, f)
    return path


@pytest.fixture
def poi_description() -> FeatureFilterDescription:
    """Points: process bars in the poi layer, ignore everything else."""
    builder = FeatureFilterDescriptionBuilder(process_points_default=False)
    builder.process_point("poi", geom_type=GeometryType.POINT, feature_class="bar")
    return builder.create_description()


@pytest.fixture
def closed_road_description() -> FeatureFilterDescription:
    """Lines: ignore closed roads, process everything else."""
    builder = FeatureFilterDescriptionBuilder(process_lines_default=True)
    builder.ignore_line(
        "road",
        feature_attribute={"key": "state", "value": "closed"},
        match_layer=StringMatch.MATCH,
    )
    return builder.create_description()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TILEFILTER_* variables of the calling shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("TILEFILTER_"):
            monkeypatch.delenv(key)
    yield


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the global logger between tests."""
    yield
    logger_module.set_global_logger(None)
