"""Base layout engine protocol.

Defines the interface that all layout solvers must implement. A solver
receives an ELK JSON graph (root with children, edges and layoutOptions)
and returns the same graph annotated with node coordinates and edge
sections.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class LayoutEngine(ABC):
    """Abstract base class for layout solvers.

    Engines are stateless between calls: every solve() works on the graph it
    is given and keeps no session, so independent calls may run concurrently.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name (e.g., 'elk', 'networkx')."""
        ...

    @abstractmethod
    async def solve(self, graph: Dict[str, Any]) -> Dict[str, Any]:
        """Lay out an ELK JSON graph.

        Args:
            graph: ELK JSON graph with sized children and edges

        Returns:
            Laid-out ELK JSON graph (x/y on children, sections on edges)

        Raises:
            SolverFailureError: If the solver fails
        """
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if engine is available (dependencies installed).

        Returns:
            True if engine can be used
        """
        ...
