"""
Layout Engine Settings

Settings are read from environment variables when the module is imported,
so deployments can switch solvers without code changes.

Usage:
    from sysml_layout.config.settings import get_setting

    engine_name = get_setting('engine')

Environment Variables:
    SYSML_LAYOUT_ENGINE=auto/elk/networkx  - Solver used by apply_layout
    SYSML_LAYOUT_NODE_PATH=/usr/bin/node   - Node.js executable for ELK
    SYSML_LAYOUT_NODE_MODULES=/app/node_modules - Extra NODE_PATH for elkjs
    SYSML_LAYOUT_SEED=42                   - Seed for the networkx force layout
                                             (malformed values fall back to 42)

'auto' picks ELK when Node.js and elkjs are installed, otherwise the
in-process networkx engine.
"""

import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _env_int(var: str, default: int) -> int:
    """Integer from an environment variable; malformed values fall back to default."""
    raw = os.getenv(var)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring {var}={raw!r}: not an integer, using {default}")
        return default


SETTINGS: Dict[str, Any] = {
    'engine': os.getenv('SYSML_LAYOUT_ENGINE', 'auto').lower(),
    'node_path': os.getenv('SYSML_LAYOUT_NODE_PATH') or None,
    'node_modules': os.getenv('SYSML_LAYOUT_NODE_MODULES') or None,
    'seed': _env_int('SYSML_LAYOUT_SEED', 42),
}


def get_setting(name: str) -> Any:
    """
    Get the current value of a setting.

    Args:
        name: Setting name (e.g., 'engine')

    Returns:
        Current setting value

    Raises:
        KeyError: If setting name is not recognized

    Example:
        >>> get_setting('engine')
        'auto'  # Default
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    return SETTINGS[name]


def get_all_settings() -> Dict[str, Any]:
    """Get a copy of all settings and their current values."""
    return SETTINGS.copy()


def set_setting(name: str, value: Any) -> None:
    """
    Programmatically set a setting (for testing only).

    Args:
        name: Setting name
        value: New value

    Warning:
        This is for testing only. In production, use environment variables.
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    SETTINGS[name] = value
