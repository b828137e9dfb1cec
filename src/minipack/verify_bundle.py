# src/minipack/verify_bundle.py
"""Bundle verification and post-processing.

Syntax checks and execution go through `node` when it is on PATH. When it
is not, checks report None (unknown) rather than failing the build.
"""

import shutil
import subprocess
from pathlib import Path

from .config.config_types import PostProcessingConfigResolved, ToolConfigResolved
from .constants import DEFAULT_NODE_COMMAND, DEFAULT_VERIFY_TIMEOUT
from .logs import get_logger


FILE_PLACEHOLDER = "{file}"


def find_node(node_command: str = DEFAULT_NODE_COMMAND) -> str | None:
    return shutil.which(node_command)


def verify_syntax(
    file_path: Path,
    *,
    node_command: str = DEFAULT_NODE_COMMAND,
) -> bool | None:
    """Check the bundle with `node --check`.

    Returns:
        True if it parses, False if node reports a syntax error or the file
        is missing, None if node is not available.
    """
    logger = get_logger()
    node = find_node(node_command)
    if node is None:
        logger.debug("node not found on PATH; skipping syntax check")
        return None
    if not file_path.exists():
        logger.debug("File not found: %s", file_path)
        return False

    try:
        result = subprocess.run(  # noqa: S603
            [node, "--check", str(file_path)],
            capture_output=True,
            text=True,
            timeout=DEFAULT_VERIFY_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Could not run node --check: %s", e)
        return None

    if result.returncode != 0:
        logger.debug("Syntax error in %s: %s", file_path, result.stderr.strip())
        return False
    logger.debug("Bundle parses: %s", file_path)
    return True


def execute_bundle(
    file_path: Path,
    *,
    node_command: str = DEFAULT_NODE_COMMAND,
    timeout: float = DEFAULT_VERIFY_TIMEOUT,
    cwd: Path | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run the bundle with node and return the completed process.

    Raises:
        FileNotFoundError: if node is not on PATH.
    """
    node = find_node(node_command)
    if node is None:
        xmsg = f"Cannot execute bundle: '{node_command}' not found on PATH"
        raise FileNotFoundError(xmsg)
    return subprocess.run(  # noqa: S603
        [node, str(file_path)],
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
        cwd=cwd,
    )


def find_tool_executable(
    tool_name: str,
    custom_path: str | None = None,
) -> str | None:
    """Find a tool executable: custom_path first, then PATH."""
    if custom_path:
        path = Path(custom_path)
        if path.is_file():
            return str(path.resolve())
    return shutil.which(tool_name)


def build_tool_command(
    tool_label: str,
    file_path: Path,
    tools_dict: dict[str, ToolConfigResolved],
) -> list[str] | None:
    """Build the full command line for one tool.

    `{file}` in args or options is replaced by the bundle path; without a
    placeholder the path is appended at the end.

    Returns:
        The command, or None if the tool is not configured or not installed.
    """
    tool = tools_dict.get(tool_label)
    if tool is None:
        return None

    executable = find_tool_executable(tool["command"], custom_path=tool["path"])
    if not executable:
        return None

    args = [*tool["args"], *tool["options"]]
    if any(FILE_PLACEHOLDER in a for a in args):
        args = [a.replace(FILE_PLACEHOLDER, str(file_path)) for a in args]
        return [executable, *args]
    return [executable, *args, str(file_path)]


def execute_post_processing(
    file_path: Path,
    config: PostProcessingConfigResolved,
) -> None:
    """Run the first working tool of each enabled category, in category order.

    An identical command already run for an earlier category is skipped.
    """
    logger = get_logger()

    if not config["enabled"]:
        logger.debug("Post-processing disabled, skipping")
        return

    executed_commands: set[tuple[str, ...]] = set()

    for category_name in config["category_order"]:
        category = config["categories"].get(category_name)
        if category is None:
            continue
        if not category["enabled"]:
            logger.debug("Category %s is disabled, skipping", category_name)
            continue

        tool_ran = False
        for tool_label in category["priority"]:
            command = build_tool_command(tool_label, file_path, category["tools"])
            if command is None:
                logger.debug(
                    "Tool %s not available for category %s", tool_label, category_name
                )
                continue

            command_tuple = tuple(command)
            if command_tuple in executed_commands:
                logger.debug("Skipping duplicate command: %s", " ".join(command))
                continue

            logger.debug("Running %s for category %s", tool_label, category_name)
            try:
                result = subprocess.run(  # noqa: S603
                    command,
                    capture_output=True,
                    text=True,
                    check=False,
                    timeout=DEFAULT_VERIFY_TIMEOUT,
                )
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.debug("Error running %s: %s", tool_label, e)
                continue

            if result.returncode == 0:
                logger.debug("%s completed for category %s", tool_label, category_name)
                executed_commands.add(command_tuple)
                tool_ran = True
                break
            logger.debug(
                "%s exited with code %d: %s",
                tool_label,
                result.returncode,
                result.stderr or result.stdout,
            )

        if not tool_ran:
            logger.debug(
                "No tool succeeded for category %s (tried: %s)",
                category_name,
                category["priority"],
            )


def post_bundle_processing(
    out_path: Path,
    *,
    post_processing: PostProcessingConfigResolved | None = None,
) -> None:
    """Post-process a written bundle and keep it parseable.

    1. syntax check before post-processing
    2. configured tools (formatter, minifier)
    3. syntax check after; a bundle that parsed before but not after is
       restored to its original text

    Raises:
        RuntimeError: if the bundle does not parse and cannot be restored.
    """
    logger = get_logger()
    logger.debug("Starting post-bundle processing for %s", out_path)

    parsed_before = verify_syntax(out_path)
    if parsed_before is False:
        logger.warning(
            "Bundle does not parse before post-processing (check the module"
            " sources). Skipping post-processing and continuing."
        )
        return

    if not post_processing or not post_processing["enabled"]:
        logger.debug("Post-processing skipped")
        return

    original_content = out_path.read_text(encoding="utf-8")
    execute_post_processing(out_path, post_processing)

    parsed_after = verify_syntax(out_path)
    if parsed_after is False:
        logger.warning(
            "Bundle no longer parses after post-processing. Reverting changes."
        )
        out_path.write_text(original_content, encoding="utf-8")
        if verify_syntax(out_path) is False:
            xmsg = (
                "Bundle does not parse after reverting post-processing changes."
                " This indicates a problem with the emitted bundle."
            )
            raise RuntimeError(xmsg)

    logger.debug("Post-bundle processing completed")
