"""Layout module for automatic SysML diagram arrangement.

This module provides:
- Layout engine abstraction (LayoutEngine protocol)
- ELK integration via elkjs and an in-process NetworkX engine
- Route extraction with boundary snapping and orthogonal stubs
- Sequence diagram layout and per-family recommended settings
"""

from sysml_layout.layout.engines import (
    ELKLayoutEngine,
    LayoutEngine,
    NetworkXLayoutEngine,
    get_engine,
    resolve_engine,
)
from sysml_layout.layout.presets import RECOMMENDED_LAYOUTS, get_recommended_config
from sysml_layout.layout.service import (
    apply_layout,
    apply_layout_sync,
    apply_recommended_layout,
    build_layout_nodes,
)

__all__ = [
    "LayoutEngine",
    "ELKLayoutEngine",
    "NetworkXLayoutEngine",
    "get_engine",
    "resolve_engine",
    "RECOMMENDED_LAYOUTS",
    "get_recommended_config",
    "apply_layout",
    "apply_layout_sync",
    "apply_recommended_layout",
    "build_layout_nodes",
]
