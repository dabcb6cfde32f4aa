import json
import logging

import requests
from fastmcp.utilities.types import Image

import config
from errors import FigmaApiError, FigmaError, InvariantViolation
from mcp_server import mcp
from styles import normalize_paints
from transform import normalize_node_id, parse_figma_response, walk_nodes

logger = logging.getLogger(__name__)


def figma_api_get(path, params=None):
    api_key = config.get_api_key()
    if not api_key:
        raise FigmaApiError(401, "Missing FIGMA_API_KEY in environment or .env")
    url = f"{config.get_api_base()}{path}"
    headers = {"X-Figma-Token": api_key}
    logger.info("Calling Figma API: %s", url)
    res = requests.get(url, headers=headers, params=params)
    logger.debug("Figma API response status: %s", res.status_code)
    if not res.ok:
        try:
            err = res.json().get("err")
        except ValueError:
            err = None
        raise FigmaApiError(res.status_code, err or res.reason or "Unknown error")
    return res.json()


def fetch_file(fileKey: str, depth: int = None) -> dict:
    params = {"depth": depth} if depth else None
    return figma_api_get(f"/files/{fileKey}", params=params)


def fetch_nodes(fileKey: str, nodeIds, depth: int = None) -> dict:
    params = {"ids": ",".join(nodeIds)}
    if depth:
        params["depth"] = depth
    return figma_api_get(f"/files/{fileKey}/nodes", params=params)


def get_node_image_url(fileKey: str, nodeId: str, format="png"):
    """Get a Figma-hosted image URL for a node (expires in ~5 mins)."""
    params = {"ids": nodeId, "format": format}
    result = figma_api_get(f"/images/{fileKey}", params=params)
    return result.get("images", {}).get(nodeId)


def find_image_fills(node: dict) -> list:
    """List the image paints in a raw tree as ``{"nodeId", "imageRef"}``."""
    found = []
    for context in walk_nodes(node):
        for paint in normalize_paints(context.node.get("fills")):
            if paint["type"] == "IMAGE" and paint.get("imageRef"):
                found.append({"nodeId": context.node.get("id"), "imageRef": paint["imageRef"]})
    return found


def serialize_design(design: dict) -> str:
    # Nodes are dumped one at a time so a huge file never becomes one giant
    # json.dumps call.
    metadata = {k: v for k, v in design.items() if k not in ("nodes", "globalVars")}
    nodes_json = ",".join(json.dumps(node, indent=2) for node in design["nodes"])
    return (
        f'{{ "metadata": {json.dumps(metadata, indent=2)}, '
        f'"nodes": [{nodes_json}], '
        f'"globalVars": {json.dumps(design["globalVars"], indent=2)} }}'
    )


def load_design(fileKey: str, nodeId: str = None, depth: int = None) -> dict:
    if nodeId:
        nodeId = normalize_node_id(nodeId)
        logger.info("Fetching node %s from file %s (depth: %s)", nodeId, fileKey, depth or "all")
        raw = fetch_nodes(fileKey, [nodeId], depth)
        return parse_figma_response(raw, [nodeId])
    logger.info("Fetching full file %s (depth: %s)", fileKey, depth or "all")
    raw = fetch_file(fileKey, depth)
    return parse_figma_response(raw)


@mcp.tool(
    name="get_figma_data",
    description="""
    Fetches a Figma file or node and returns a simplified layout/style tree.

    Styles shared between nodes are listed once under `globalVars` and referenced
    from each node's `styles` and `textRuns` by id (for example `fill_0`).
    Use this tool when you want structured layout/styling data of a UI for code generation.
    """
)
def get_figma_data(fileKey: str, nodeId: str = None, depth: int = None):
    try:
        design = load_design(fileKey, nodeId, depth)
        return serialize_design(design)
    except InvariantViolation:
        logger.exception("Simplified design for %s failed consistency checks", fileKey)
        raise
    except (FigmaError, requests.RequestException) as e:
        logger.error("Failed to process Figma data for %s: %s", fileKey, e)
        return {"error": f"Failed to process Figma data: {e}"}


@mcp.tool(
    name="download_figma_image",
    description="""
    Downloads a design node from Figma and returns it as an image object for visual reference.
    """
)
def download_figma_image(fileKey: str, nodeId: str):
    try:
        nodeId = normalize_node_id(nodeId)
        image_url = get_node_image_url(fileKey, nodeId)
        if not image_url:
            return {"error": f"Could not get image URL for nodeId {nodeId}"}

        image_response = requests.get(image_url)
        image_response.raise_for_status()

        img = Image(data=image_response.content, format="png")
        return img.to_image_content()

    except (FigmaError, requests.RequestException) as e:
        logger.error("Failed to fetch image for %s in %s: %s", nodeId, fileKey, e)
        return {"error": f"Failed to fetch or convert image: {e}"}
