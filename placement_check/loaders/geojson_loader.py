"""GeoJSON loading for reference layers.

Reads FeatureCollections (borders, placement zones, hazard areas) and groups
their polygon features into named reference layers by a feature property,
the way the map groups features by their ``type``.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Union

from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, shape
from shapely.validation import make_valid

from ..models.layers import ReferenceLayer, ReferenceLayers

logger = logging.getLogger(__name__)

GeoJSONSource = Union[dict[str, Any], str, Path]

DEFAULT_LAYER = "default"


@dataclass
class LayerLoadResult:
    """Result from loading one or more GeoJSON sources."""

    layers: ReferenceLayers = field(default_factory=ReferenceLayers)
    feature_counts: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def load_reference_layers(
    sources: Union[GeoJSONSource, Iterable[GeoJSONSource]],
    group_property: str = "type",
) -> LayerLoadResult:
    """Load reference layers from GeoJSON.

    Args:
        sources: A GeoJSON dict, JSON text, file path, or a list of those
        group_property: Feature property naming the layer of each feature

    Returns:
        LayerLoadResult with layers grouped by property value

    Raises:
        FileNotFoundError: If a path does not exist
        ValueError: If a source is not a GeoJSON Feature or FeatureCollection
    """
    if isinstance(sources, (dict, str, Path)):
        sources = [sources]

    grouped: dict[str, list[Polygon]] = {}
    result = LayerLoadResult()

    for source in sources:
        data, fallback_name = _read_source(source)
        features = _features_of(data)

        for i, feature in enumerate(features):
            props = feature.get("properties") or {}
            layer_name = str(props.get(group_property) or fallback_name)

            geometry = feature.get("geometry")
            if geometry is None:
                result.warnings.append(f"Feature {i} in {fallback_name} has no geometry")
                continue

            polygons = _polygons_of(shape(geometry))
            if not polygons:
                result.warnings.append(
                    f"Skipped non-polygon feature {i} ({geometry.get('type')}) in {layer_name}"
                )
                continue

            grouped.setdefault(layer_name, []).extend(polygons)

    for name, polygons in sorted(grouped.items()):
        result.layers.add(ReferenceLayer(name, polygons))
        result.feature_counts[name] = len(polygons)
        logger.info(f"Loaded {len(polygons)} polygon(s) into layer '{name}'")

    for warning in result.warnings:
        logger.warning(warning)

    return result


def _read_source(source: GeoJSONSource) -> tuple[dict[str, Any], str]:
    """Return parsed GeoJSON and the name used for ungrouped features."""
    if isinstance(source, dict):
        return source, DEFAULT_LAYER

    if isinstance(source, str) and source.lstrip().startswith("{"):
        return json.loads(source), DEFAULT_LAYER

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"GeoJSON file not found: {path}")
    with open(path) as f:
        return json.load(f), path.stem


def _features_of(data: dict[str, Any]) -> list[dict[str, Any]]:
    kind = data.get("type")
    if kind == "FeatureCollection":
        return list(data.get("features") or [])
    if kind == "Feature":
        return [data]
    raise ValueError(f"Expected a GeoJSON Feature or FeatureCollection, got {kind!r}")


def _polygons_of(geom) -> list[Polygon]:
    """Split a geometry into valid polygons, repairing it first if needed."""
    if geom.is_empty:
        return []
    if not geom.is_valid:
        geom = make_valid(geom)

    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        polygons = []
        for part in geom.geoms:
            polygons.extend(_polygons_of(part))
        return polygons
    return []
