"""Recommended layout settings per SysML diagram family.

Values are a compatibility contract with the diagram front end and must not
drift.
"""

from typing import Any, Dict, Optional

from sysml_layout.errors import InvalidConfigError, UnknownDiagramFamilyError
from sysml_layout.models.layout_result import LayoutConfig

RECOMMENDED_LAYOUTS: Dict[str, Dict[str, Any]] = {
    # Block Definition Diagram: definitions and specializations as a hierarchy
    "bdd": {
        "algorithm": "layered",
        "direction": "DOWN",
        "node_spacing": 100,
        "layer_spacing": 120,
    },
    # Internal Block Diagram: packed part compositions and connections
    "ibd": {
        "algorithm": "box",
        "node_spacing": 80,
        "layer_spacing": 80,
    },
    "requirements": {
        "algorithm": "layered",
        "direction": "DOWN",
        "node_spacing": 90,
        "layer_spacing": 110,
    },
    "stateMachine": {
        "algorithm": "force",
        "node_spacing": 120,
        "layer_spacing": 120,
    },
    "activity": {
        "algorithm": "layered",
        "direction": "DOWN",
        "node_spacing": 70,
        "layer_spacing": 90,
    },
    # Lifelines in a row, see sysml_layout.layout.sequence
    "sequence": {
        "algorithm": "sequence",
        "node_spacing": 280,
        "layer_spacing": 100,
        "node_width": 200,
        "node_height": 100,
    },
    "useCase": {
        "algorithm": "force",
        "node_spacing": 150,
        "layer_spacing": 150,
    },
    # Package containment as a tree
    "package": {
        "algorithm": "mrtree",
        "direction": "DOWN",
        "node_spacing": 100,
        "layer_spacing": 120,
    },
}

_FIELD_ALIASES = {
    "nodeSpacing": "node_spacing",
    "layerSpacing": "layer_spacing",
    "nodeWidth": "node_width",
    "nodeHeight": "node_height",
}


def get_recommended_config(
    family: str,
    overrides: Optional[Dict[str, Any]] = None,
) -> LayoutConfig:
    """Recommended config for a diagram family with caller overrides applied.

    Overrides win per field and may use snake_case or camelCase names.

    Raises:
        UnknownDiagramFamilyError: If the family has no recommended settings
        InvalidConfigError: If an override is unknown or invalid
    """
    if family not in RECOMMENDED_LAYOUTS:
        raise UnknownDiagramFamilyError(family, RECOMMENDED_LAYOUTS.keys())

    merged = dict(RECOMMENDED_LAYOUTS[family])
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        merged[_FIELD_ALIASES.get(key, key)] = value

    unknown = set(merged) - set(LayoutConfig.model_fields)
    if unknown:
        raise InvalidConfigError(
            f"Unknown layout option(s): {', '.join(sorted(unknown))}"
        )
    return LayoutConfig.from_options(merged)


__all__ = ["RECOMMENDED_LAYOUTS", "get_recommended_config"]
