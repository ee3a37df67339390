"""ELK layout engine via elkjs.

Runs the Eclipse Layout Kernel through a short-lived Node.js process per
layout call: the ELK JSON graph goes to stdin, the laid-out graph comes
back on stdout. No worker is shared between calls, so concurrent layouts
never see each other's state.
"""

import asyncio
import glob
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

from sysml_layout.config.settings import get_setting
from sysml_layout.errors import SolverFailureError
from sysml_layout.layout.engines.base import LayoutEngine

logger = logging.getLogger(__name__)


class ELKLayoutEngine(LayoutEngine):
    """ELK layout engine via an elkjs Node.js subprocess."""

    def __init__(
        self,
        node_path: Optional[str] = None,
        runner_script: Optional[Path] = None,
        node_modules: Optional[str] = None,
    ):
        """Initialize ELK layout engine.

        Args:
            node_path: Path to Node.js executable (settings / auto-detect if None)
            runner_script: Path to elk_layout.js (use bundled if None)
            node_modules: Extra NODE_PATH entry used to resolve elkjs
        """
        self._node_path = node_path or get_setting('node_path')
        self._runner_script = runner_script or self._default_runner_script()
        self._node_modules = node_modules or get_setting('node_modules')

    @property
    def name(self) -> str:
        return "elk"

    @property
    def node_path(self) -> str:
        if self._node_path is None:
            self._node_path = self._find_node()
        return self._node_path

    def _find_node(self) -> str:
        """Find Node.js executable."""
        for path in ["node", "/usr/bin/node", "/usr/local/bin/node"]:
            try:
                result = subprocess.run(
                    [path, "--version"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                if result.returncode == 0:
                    return path
            except (subprocess.SubprocessError, FileNotFoundError):
                continue

        nvm_node = os.path.expanduser("~/.nvm/versions/node/*/bin/node")
        nvm_paths = glob.glob(nvm_node)
        if nvm_paths:
            return sorted(nvm_paths)[-1]  # Latest version

        raise SolverFailureError("elk", "Node.js not found. Install Node.js to use ELK layout.")

    def _default_runner_script(self) -> Path:
        """Get path to bundled elk_layout.js."""
        return Path(__file__).parent / "elk_layout.js"

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self._node_modules:
            existing = env.get("NODE_PATH")
            env["NODE_PATH"] = (
                f"{self._node_modules}{os.pathsep}{existing}" if existing else self._node_modules
            )
        return env

    async def is_available(self) -> bool:
        """Check that Node.js runs and can resolve elkjs."""
        try:
            node = self.node_path
            check_script = (
                "try { require('elkjs/lib/elk.bundled.js'); console.log('ok'); } "
                "catch(e) { console.log('missing'); }"
            )
            result = subprocess.run(
                [node, "-e", check_script],
                capture_output=True,
                text=True,
                timeout=5,
                cwd=self._runner_script.parent,
                env=self._env(),
            )
            return result.returncode == 0 and result.stdout.strip() == "ok"

        except (SolverFailureError, subprocess.SubprocessError, OSError) as e:
            logger.debug(f"ELK availability check failed: {e}")
            return False

    async def solve(self, graph: Dict[str, Any]) -> Dict[str, Any]:
        """Run ELK on a graph in a fresh Node.js process.

        Raises:
            SolverFailureError: If Node.js cannot be started, exits with an
                error, or returns output that is not a laid-out graph
        """
        payload = json.dumps(graph).encode()
        logger.debug(
            f"Starting ELK layout ({len(graph.get('children', []))} nodes, "
            f"{len(graph.get('edges', []))} edges)"
        )

        try:
            process = await asyncio.create_subprocess_exec(
                self.node_path,
                str(self._runner_script),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._runner_script.parent,
                env=self._env(),
            )
        except OSError as e:
            raise SolverFailureError(self.name, f"could not start Node.js: {e}") from e

        stdout, stderr = await process.communicate(payload)

        try:
            response = json.loads(stdout.decode() or "{}")
        except json.JSONDecodeError as e:
            raise SolverFailureError(
                self.name, f"unreadable output: {stderr.decode().strip() or e}"
            ) from e

        if "error" in response:
            raise SolverFailureError(self.name, str(response["error"]))
        if process.returncode != 0 or "result" not in response:
            raise SolverFailureError(
                self.name,
                f"exit code {process.returncode}: {stderr.decode().strip()}",
            )

        logger.debug("ELK layout finished")
        return response["result"]


__all__ = ["ELKLayoutEngine"]
