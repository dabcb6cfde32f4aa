# transform.py
import logging
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, Iterator, Optional, Union

from errors import FigmaError, InvariantViolation, NodeNotFoundError
from global_vars import GlobalVarTable
from styles import extract_fill, extract_styles, normalize_number, normalize_type_style

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("name", "lastModified", "thumbnailUrl")


@dataclass(frozen=True, eq=False)
class NodeContext:
    """One visit of the walker: the raw node plus the chain of its ancestors."""

    node: dict
    parent: Optional["NodeContext"] = None
    depth: int = 0

    @property
    def ancestors(self) -> Iterator[dict]:
        context = self.parent
        while context is not None:
            yield context.node
            context = context.parent


def _children(node: dict) -> list:
    children = node.get("children")
    if not isinstance(children, list):
        return []
    return [c for c in children if isinstance(c, dict)]


def walk_nodes(roots: Union[dict, Iterable[dict]]) -> Iterator[NodeContext]:
    """Yield a context for every node under ``roots`` in pre-order."""
    if isinstance(roots, dict):
        roots = [roots]
    stack = [NodeContext(root) for root in reversed(list(roots)) if isinstance(root, dict)]
    while stack:
        context = stack.pop()
        yield context
        stack.extend(
            NodeContext(child, context, context.depth + 1)
            for child in reversed(_children(context.node))
        )


def normalize_node_id(node_id: str) -> str:
    # URLs carry node ids as "1-2", the API wants "1:2".
    return node_id.replace("-", ":")


def _bounding_box(node: dict):
    box = node.get("absoluteBoundingBox")
    if not isinstance(box, dict):
        return None
    return {k: box[k] for k in ("x", "y", "width", "height") if box.get(k) is not None}


def _border_radius(node: dict):
    radii = node.get("rectangleCornerRadii")
    if (
        isinstance(radii, list) and len(radii) == 4
        and all(isinstance(r, (int, float)) for r in radii) and len(set(radii)) > 1
    ):
        return [normalize_number(r) for r in radii]
    radius = normalize_number(node.get("cornerRadius"))
    return radius or None


def _override_at(overrides: list, index: int) -> int:
    # Figma trims trailing zeros from characterStyleOverrides.
    value = overrides[index] if index < len(overrides) else 0
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def split_text_runs(node: dict, table: GlobalVarTable) -> list:
    """Split ``characters`` wherever the character style override changes.

    Override indices count UTF-16 code units, the way Figma reports them.
    Each run gets the node's base ``style`` merged with its override, and
    its own typography id; an override that changes the text color also
    gets a fill id.
    """
    text = node.get("characters")
    if not isinstance(text, str) or not text:
        return []

    overrides = node.get("characterStyleOverrides")
    if not isinstance(overrides, list):
        overrides = []
    override_table = node.get("styleOverrideTable")
    if not isinstance(override_table, dict):
        override_table = {}
    base_style = node.get("style") if isinstance(node.get("style"), dict) else {}

    units = text.encode("utf-16-le")
    runs = []
    position = 0
    for override_id, group in groupby(range(len(units) // 2), key=lambda i: _override_at(overrides, i)):
        size = sum(1 for _ in group)
        chunk = units[2 * position:2 * (position + size)].decode("utf-16-le", errors="surrogatepass")
        position += size

        override = override_table.get(str(override_id)) if override_id else None
        if not isinstance(override, dict):
            override = {}
        run = {"text": chunk}
        typography = normalize_type_style({**base_style, **override})
        if typography is not None:
            run["style"] = table.intern("typography", typography)
        fill = extract_fill(override)
        if fill is not None:
            run["fill"] = table.intern("fill", fill)
        runs.append(run)
    return runs


def assemble_node(context: NodeContext, table: GlobalVarTable) -> dict:
    """Build the simplified record for one node, without its children."""
    node = context.node
    simplified = {k: node.get(k) for k in ("id", "name", "type") if node.get(k) is not None}

    bounding_box = _bounding_box(node)
    if bounding_box:
        simplified["boundingBox"] = bounding_box
    opacity = normalize_number(node.get("opacity"))
    if isinstance(opacity, (int, float)) and opacity != 1:
        simplified["opacity"] = opacity
    border_radius = _border_radius(node)
    if border_radius:
        simplified["borderRadius"] = border_radius
    if node.get("visible") is False:
        simplified["visible"] = False

    styles = {
        category: table.intern(category, style)
        for category, style in extract_styles(node).items()
    }
    if styles:
        simplified["styles"] = styles

    if isinstance(node.get("characters"), str):
        simplified["text"] = node["characters"]
        simplified["textRuns"] = split_text_runs(node, table)

    simplified["children"] = []
    return simplified


def simplify_nodes(roots, table: GlobalVarTable) -> list:
    simplified_roots = []
    assembled = {}
    for context in walk_nodes(roots):
        simplified = assemble_node(context, table)
        if context.parent is None:
            simplified_roots.append(simplified)
        else:
            assembled[context.parent]["children"].append(simplified)
        assembled[context] = simplified
    return simplified_roots


def style_references(node: dict) -> Iterator[tuple]:
    """Yield ``(category, style_id)`` for every id a simplified node uses."""
    for category, style_id in node.get("styles", {}).items():
        yield category, style_id
    for run in node.get("textRuns", []):
        if "style" in run:
            yield "typography", run["style"]
        if "fill" in run:
            yield "fill", run["fill"]


def verify_design(design: dict) -> None:
    global_vars = design["globalVars"]
    referenced = set()
    for context in walk_nodes(design["nodes"]):
        for category, style_id in style_references(context.node):
            if style_id not in global_vars or not style_id.startswith(category + "_"):
                raise InvariantViolation(
                    f"Node {context.node.get('id')} references missing {category} style {style_id}"
                )
            referenced.add(style_id)
    orphans = sorted(set(global_vars) - referenced)
    if orphans:
        raise InvariantViolation(f"globalVars has unreferenced entries: {orphans}")


def build_design(roots, metadata: Optional[dict] = None) -> dict:
    """Simplify ``roots`` into a design with its own, fresh style table."""
    metadata = metadata or {}
    table = GlobalVarTable()
    nodes = simplify_nodes(roots, table)
    design = {field: metadata.get(field) for field in METADATA_FIELDS}
    design["nodes"] = nodes
    design["globalVars"] = table.as_dict()
    verify_design(design)
    logger.debug("Simplified %d root node(s) into %d shared styles", len(nodes), len(table))
    return design


def select_roots(data: dict, node_ids=None) -> list:
    """Pick the raw roots to simplify out of a Figma API response.

    A ``/files/:key/nodes`` response is keyed by requested id; a
    ``/files/:key`` response has a single ``document``. Requested ids that
    the payload does not contain raise ``NodeNotFoundError``.
    """
    ids = [normalize_node_id(i) for i in node_ids] if node_ids is not None else None

    nodes = data.get("nodes")
    if isinstance(nodes, dict):
        roots = []
        for node_id in ids if ids is not None else list(nodes):
            entry = nodes.get(node_id)
            document = entry.get("document") if isinstance(entry, dict) else None
            if not isinstance(document, dict):
                raise NodeNotFoundError(node_id, nodes.keys())
            roots.append(document)
        return roots

    document = data.get("document")
    if not isinstance(document, dict):
        raise FigmaError("Figma response has neither a 'document' nor a 'nodes' field.")
    if ids is None:
        return _children(document)

    index = {}
    for context in walk_nodes(document):
        index.setdefault(context.node.get("id"), context.node)
    roots = []
    for node_id in ids:
        if node_id not in index:
            raise NodeNotFoundError(node_id)
        roots.append(index[node_id])
    return roots


def parse_figma_response(data: dict, node_ids=None) -> dict:
    roots = select_roots(data, node_ids)
    design = build_design(roots, data)
    logger.info(
        "Simplified '%s': %d root node(s), %d global vars",
        design.get("name"), len(design["nodes"]), len(design["globalVars"]),
    )
    return design
