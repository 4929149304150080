"""Reference layer loaders for placement-check."""

from .geojson_loader import LayerLoadResult, load_reference_layers

__all__ = [
    "load_reference_layers",
    "LayerLoadResult",
]
