# tests/utils/__init__.py

from .buildconfig import (
    make_build_cfg,
    make_config_content,
    make_meta,
    make_post_category_config_resolved,
    make_post_processing_config_resolved,
    make_resolved,
    make_tool_config_resolved,
    write_config_file,
)
from .ci import clear_ci_env, set_ci_env
from .constants import DEFAULT_TEST_LOG_LEVEL, PROJ_ROOT
from .jsproject import (
    BASIC_PROJECT,
    COUNTER_PROJECT,
    CYCLE_PROJECT,
    DIAMOND_PROJECT,
    LIVE_BINDING_PROJECT,
    MIXED_SYNTAX_PROJECT,
    NODE,
    make_js_project,
    requires_node,
)
from .patch_everywhere import patch_everywhere
from .trace import TEST_TRACE


__all__ = [  # noqa: RUF022
    # buildconfig
    "make_build_cfg",
    "make_config_content",
    "make_meta",
    "make_post_category_config_resolved",
    "make_post_processing_config_resolved",
    "make_resolved",
    "make_tool_config_resolved",
    "write_config_file",
    # ci
    "clear_ci_env",
    "set_ci_env",
    # constants
    "DEFAULT_TEST_LOG_LEVEL",
    "PROJ_ROOT",
    # jsproject
    "BASIC_PROJECT",
    "COUNTER_PROJECT",
    "CYCLE_PROJECT",
    "DIAMOND_PROJECT",
    "LIVE_BINDING_PROJECT",
    "MIXED_SYNTAX_PROJECT",
    "NODE",
    "make_js_project",
    "requires_node",
    # patch_everywhere
    "patch_everywhere",
    # trace
    "TEST_TRACE",
]
