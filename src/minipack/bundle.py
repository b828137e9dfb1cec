# src/minipack/bundle.py
"""Render a dependency graph as one self-contained JavaScript file.

The output is a self-invoking function that receives the module registry
(identity → [factory, mapping]) and defines a small `require`. Each
`require(id)` call runs the module factory again with a fresh
`module.exports`; nothing is cached between calls.
"""

import json
from string import Template

from .asset import Graph
from .logs import get_app_logger


# Insertion point: ${registry}. The skeleton holds no other `$`.
RUNTIME_TEMPLATE = Template(
    """\
(function (modules) {
  function require(id) {
    var fn = modules[id][0];
    var mapping = modules[id][1];

    function localRequire(name) {
      return require(mapping[name]);
    }

    var module = { exports: {} };

    fn(localRequire, module, module.exports);

    return module.exports;
  }

  require(0);
})({
${registry}
});
"""
)

# Insertion points: ${identity}, ${code}, ${mapping}.
# `code` goes in verbatim and unindented so template literals keep their text.
ENTRY_TEMPLATE = Template(
    """\
${identity}: [
function (require, module, exports) {
${code}
},
${mapping},
],"""
)


def _check_graph(graph: Graph) -> None:
    """Raise ValueError unless the graph can be emitted."""
    if not graph:
        xmsg = "Cannot emit a bundle for an empty graph"
        raise ValueError(xmsg)

    count = len(graph)
    for position, asset in enumerate(graph):
        if asset.identity != position:
            xmsg = (
                f"Asset identities must run 0..{count - 1} in order;"
                f" found #{asset.identity} at position {position} ({asset.path})"
            )
            raise ValueError(xmsg)
        if asset.resolution is None:
            xmsg = f"Asset #{asset.identity} ({asset.path}) was never resolved"
            raise ValueError(xmsg)
        dangling = {
            spec: ident
            for spec, ident in asset.resolution.items()
            if not 0 <= ident < count
        }
        if dangling:
            xmsg = (
                f"Asset #{asset.identity} ({asset.path}) maps to identities"
                f" outside the graph: {dangling}"
            )
            raise ValueError(xmsg)


def render_registry_entry(identity: int, code: str, mapping: dict[str, int]) -> str:
    return ENTRY_TEMPLATE.substitute(
        identity=str(identity),
        code=code.rstrip("\n"),
        mapping=json.dumps(mapping),
    )


def emit_bundle(graph: Graph) -> str:
    """Return the bundle text for `graph`.

    Raises:
        ValueError: if an asset is unresolved or identities are not
            exactly 0..n-1 in discovery order.
    """
    _check_graph(graph)
    logger = get_app_logger()

    entries = [
        render_registry_entry(asset.identity, asset.code, asset.resolution or {})
        for asset in graph
    ]
    text = RUNTIME_TEMPLATE.substitute(registry="\n".join(entries))
    logger.trace(f"[bundle] emitted {len(graph)} module(s), {len(text)} chars")
    return text
