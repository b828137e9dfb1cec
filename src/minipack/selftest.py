# src/minipack/selftest.py
"""Built-in sanity check for `minipack --selftest`.

Writes a tiny acyclic project to a temp dir, bundles it, checks the graph
shape, and runs the bundle with node when node is installed.
"""

import subprocess
import tempfile
import time
from pathlib import Path

from .asset import Graph
from .bundle import emit_bundle
from .errors import ExtractionError, GraphLimitError
from .extract import extract_asset
from .graph import build_graph
from .logs import get_app_logger
from .meta import PROGRAM_DISPLAY
from .verify_bundle import execute_bundle, find_node, verify_syntax


SELFTEST_FILES: dict[str, str] = {
    "entry.js": (
        'import { greet } from "./greet.js";\n'
        'import name from "./name.js";\n'
        "console.log(greet(name));\n"
    ),
    "greet.js": (
        'import { mark } from "./punct.js";\n'
        "export function greet(who) {\n"
        '  return "hello, " + who + mark;\n'
        "}\n"
    ),
    "name.js": 'export default "world";\n',
    "punct.js": 'export const mark = "!";\n',
}

# (file, resolution table) in discovery order
SELFTEST_EXPECTED_GRAPH: list[tuple[str, dict[str, int]]] = [
    ("entry.js", {"./greet.js": 1, "./name.js": 2}),
    ("greet.js", {"./punct.js": 3}),
    ("name.js", {}),
    ("punct.js", {}),
]
SELFTEST_EXPECTED_OUTPUT = "hello, world!"


def _check_graph_shape(graph: Graph, root: Path) -> list[str]:
    problems: list[str] = []
    if len(graph) != len(SELFTEST_EXPECTED_GRAPH):
        problems.append(
            f"expected {len(SELFTEST_EXPECTED_GRAPH)} assets, got {len(graph)}"
        )
        return problems
    for ident, (asset, (name, mapping)) in enumerate(
        zip(graph, SELFTEST_EXPECTED_GRAPH, strict=True)
    ):
        if asset.identity != ident:
            problems.append(f"{name}: identity {asset.identity}, expected {ident}")
        if asset.path != (root / name).resolve():
            problems.append(f"#{ident}: path {asset.path}, expected {name}")
        if asset.resolution != mapping:
            problems.append(f"{name}: mapping {asset.resolution}, expected {mapping}")
    return problems


def run_selftest() -> bool:
    """Run a lightweight functional test of the bundler.

    Returns:
        True if every check passed.
    """
    logger = get_app_logger()

    # Always run at least at DEBUG so failures are visible.
    with logger.use_level("debug", minimum=True):
        logger.info("🧪 Running self-test...")
        start_time = time.time()

        try:
            with tempfile.TemporaryDirectory(prefix="minipack-selftest-") as tmp:
                tmp_dir = Path(tmp).resolve()
                for name, text in SELFTEST_FILES.items():
                    (tmp_dir / name).write_text(text, encoding="utf-8")

                logger.debug("[SELFTEST] building graph in %s", tmp_dir)
                graph = build_graph(tmp_dir / "entry.js", extract_asset)
                problems = _check_graph_shape(graph, tmp_dir)
                if problems:
                    for problem in problems:
                        logger.error("Self-test graph check failed: %s", problem)
                    return False

                bundle_path = tmp_dir / "entry.bundle.js"
                bundle_path.write_text(emit_bundle(graph), encoding="utf-8")
                logger.debug("[SELFTEST] bundle written to %s", bundle_path)

                if find_node() is None:
                    logger.warning(
                        "node not found on PATH; skipping bundle execution check"
                    )
                else:
                    if verify_syntax(bundle_path) is False:
                        logger.error("Self-test failed: bundle does not parse")
                        return False
                    result = execute_bundle(bundle_path, cwd=tmp_dir)
                    output = result.stdout.strip()
                    if result.returncode != 0 or output != SELFTEST_EXPECTED_OUTPUT:
                        logger.error(
                            "Self-test failed: node exited %d with output %r"
                            " (expected %r)%s",
                            result.returncode,
                            output,
                            SELFTEST_EXPECTED_OUTPUT,
                            f"\n{result.stderr.strip()}" if result.stderr else "",
                        )
                        return False
                    logger.debug("[SELFTEST] bundle output: %r", output)

        except (
            ExtractionError,
            GraphLimitError,
            OSError,
            ValueError,
            subprocess.SubprocessError,
        ) as e:
            logger.error_if_not_debug("Self-test failed: %s", e)
            return False

        elapsed = time.time() - start_time
        logger.info(
            "✅ %s self-test passed in %.2fs — all systems go.",
            PROGRAM_DISPLAY,
            elapsed,
        )
        return True
