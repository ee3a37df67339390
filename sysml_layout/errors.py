"""Layout error taxonomy.

Only configuration problems and solver failures are raised. Partial solver
output and degenerate routes are reported on the LayoutResult instead
(see LayoutResult.unpositioned / LayoutResult.skipped_routes).

These do not derive from ValueError so that pydantic validators let them
propagate unwrapped.
"""


class LayoutError(Exception):
    """Base class for all layout failures."""
    pass


class InvalidConfigError(LayoutError):
    """Raised when a layout configuration is rejected before solving."""
    pass


class UnknownDiagramFamilyError(InvalidConfigError):
    """Raised when no recommended settings exist for a diagram family."""

    def __init__(self, family: str, available):
        self.family = family
        self.available = list(available)
        super().__init__(
            f"Unknown diagram family: '{family}'. "
            f"Available families: {', '.join(self.available)}"
        )


class UnknownEngineError(InvalidConfigError):
    """Raised when a layout engine name is not registered."""

    def __init__(self, name: str, available):
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Unknown layout engine: {name}. Available: {self.available}"
        )


class SolverFailureError(LayoutError):
    """Raised when the external layout solver fails.

    No partial result is synthesized; callers retry with adjusted input or
    fall back to manual positions.
    """

    def __init__(self, engine: str, reason: str):
        self.engine = engine
        self.reason = reason
        super().__init__(f"{engine} layout failed: {reason}")


__all__ = [
    "LayoutError",
    "InvalidConfigError",
    "UnknownDiagramFamilyError",
    "UnknownEngineError",
    "SolverFailureError",
]
