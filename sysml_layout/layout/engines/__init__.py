"""Layout engines registry.

Available engines:
- elk: ELK via elkjs (layered, force, mrtree, box; orthogonal routing)
- networkx: in-process NetworkX solver (fallback, always available)
- auto: elk when Node.js and elkjs are installed, else networkx
"""

import logging
from typing import Optional

from sysml_layout.config.settings import get_setting
from sysml_layout.errors import UnknownEngineError
from sysml_layout.layout.engines.base import LayoutEngine
from sysml_layout.layout.engines.elk import ELKLayoutEngine
from sysml_layout.layout.engines.networkx_engine import NetworkXLayoutEngine

logger = logging.getLogger(__name__)

# Engine registry
ENGINES = {
    "elk": ELKLayoutEngine,
    "networkx": NetworkXLayoutEngine,
}


def get_engine(name: str) -> type:
    """Get layout engine class by name.

    Args:
        name: Engine name ('elk', 'networkx')

    Returns:
        Layout engine class

    Raises:
        UnknownEngineError: If engine not found
    """
    if name not in ENGINES:
        raise UnknownEngineError(name, ENGINES.keys())
    return ENGINES[name]


async def resolve_engine(name: Optional[str] = None) -> LayoutEngine:
    """Instantiate the engine to use for one layout call.

    Args:
        name: 'auto', 'elk' or 'networkx'; defaults to the 'engine' setting

    Returns:
        A fresh LayoutEngine instance
    """
    name = (name or get_setting('engine')).lower()
    if name != "auto":
        return get_engine(name)()

    elk = ELKLayoutEngine()
    if await elk.is_available():
        logger.info("Using ELK layout engine")
        return elk
    logger.warning("ELK not available (Node.js and elkjs required), using networkx engine")
    return NetworkXLayoutEngine()


__all__ = [
    "LayoutEngine",
    "ELKLayoutEngine",
    "NetworkXLayoutEngine",
    "ENGINES",
    "get_engine",
    "resolve_engine",
]
