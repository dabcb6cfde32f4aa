# styles.py
"""Canonical style extraction for raw Figma nodes.

Every function here is pure: it reads a raw node (or a piece of one) and
returns a plain, JSON-compatible dict, or ``None`` when the node carries no
style of that category. Two raw inputs that describe the same style always
come out equal, regardless of key order or float formatting in the source.
"""
import math

CATEGORIES = ("fill", "stroke", "effect", "typography", "layout")

AUTO_LAYOUT_MODES = ("HORIZONTAL", "VERTICAL")
NORMAL_BLEND_MODES = (None, "NORMAL", "PASS_THROUGH")


def normalize_number(value, digits: int = 4):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if not math.isfinite(value):
        return None
    value = round(float(value), digits)
    if value == int(value):
        return int(value)
    return value


def _opacity(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 1.0
    return float(value)


def _without_none(values: dict) -> dict:
    return {k: v for k, v in values.items() if v is not None}


def normalize_color(color, opacity=1.0):
    """Convert a Figma 0..1 RGBA color to 0-255 channels plus alpha.

    Paint opacity is folded into alpha. Alpha is left out exactly when it is
    fully opaque, so ``{"r": 255, "g": 0, "b": 0}`` always means opaque red.
    """
    if not isinstance(color, dict):
        return None
    channels = {}
    for channel in ("r", "g", "b"):
        value = color.get(channel, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            value = 0
        channels[channel] = int(round(min(max(value, 0.0), 1.0) * 255))
    alpha = normalize_number(_opacity(color.get("a", 1.0)) * _opacity(opacity))
    if alpha is not None and alpha != 1:
        channels["a"] = alpha
    return channels


def _gradient_stops(stops) -> list:
    result = []
    for stop in stops if isinstance(stops, list) else []:
        if not isinstance(stop, dict):
            continue
        color = normalize_color(stop.get("color"))
        if color is None:
            continue
        result.append({"position": normalize_number(stop.get("position", 0)), "color": color})
    return result


def _gradient_handles(handles) -> list:
    return [
        {"x": normalize_number(h.get("x", 0)), "y": normalize_number(h.get("y", 0))}
        for h in (handles if isinstance(handles, list) else [])
        if isinstance(h, dict)
    ]


def normalize_paint(paint):
    if not isinstance(paint, dict) or paint.get("visible", True) is False:
        return None
    paint_type = paint.get("type")
    if not paint_type or not isinstance(paint_type, str):
        return None
    opacity = _opacity(paint.get("opacity", 1.0))

    if paint_type == "SOLID":
        color = normalize_color(paint.get("color"), opacity)
        if color is None:
            return None
        normalized = {"type": "SOLID", "color": color}
    elif paint_type.startswith("GRADIENT_"):
        normalized = {
            "type": paint_type,
            "stops": _gradient_stops(paint.get("gradientStops")),
        }
        handles = _gradient_handles(paint.get("gradientHandlePositions"))
        if handles:
            normalized["handles"] = handles
        transform = paint.get("gradientTransform")
        if isinstance(transform, list) and transform:
            normalized["transform"] = [
                [normalize_number(v) for v in row] for row in transform if isinstance(row, list)
            ]
    elif paint_type == "IMAGE":
        normalized = _without_none({
            "type": "IMAGE",
            "imageRef": paint.get("imageRef"),
            "scaleMode": paint.get("scaleMode"),
        })
    else:
        normalized = {"type": paint_type}

    if paint_type != "SOLID" and normalize_number(opacity) != 1:
        normalized["opacity"] = normalize_number(opacity)
    if paint.get("blendMode") not in NORMAL_BLEND_MODES:
        normalized["blendMode"] = paint["blendMode"]
    return normalized


def normalize_paints(paints) -> list:
    if not isinstance(paints, list):
        return []
    normalized = (normalize_paint(p) for p in paints)
    return [p for p in normalized if p is not None]


def extract_fill(node: dict):
    paints = normalize_paints(node.get("fills"))
    if not paints:
        return None
    return {"paints": paints}


def extract_stroke(node: dict):
    paints = normalize_paints(node.get("strokes"))
    if not paints:
        return None
    stroke = _without_none({
        "paints": paints,
        "weight": normalize_number(node.get("strokeWeight")),
        "align": node.get("strokeAlign"),
    })
    weights = node.get("individualStrokeWeights")
    if isinstance(weights, dict):
        stroke["weights"] = {
            side: normalize_number(weights.get(side, 0))
            for side in ("top", "right", "bottom", "left")
        }
    dashes = node.get("strokeDashes")
    if isinstance(dashes, list) and dashes:
        stroke["dashes"] = [normalize_number(d) for d in dashes]
    return stroke


def normalize_effect(effect):
    if not isinstance(effect, dict) or effect.get("visible", True) is False:
        return None
    if not effect.get("type"):
        return None
    normalized = _without_none({
        "type": effect["type"],
        "radius": normalize_number(effect.get("radius")),
        "color": normalize_color(effect.get("color")),
    })
    spread = normalize_number(effect.get("spread"))
    if spread:
        normalized["spread"] = spread
    offset = effect.get("offset")
    if isinstance(offset, dict):
        normalized["offset"] = {
            "x": normalize_number(offset.get("x", 0)),
            "y": normalize_number(offset.get("y", 0)),
        }
    if effect.get("blendMode") not in NORMAL_BLEND_MODES:
        normalized["blendMode"] = effect["blendMode"]
    return normalized


def extract_effect(node: dict):
    effects = node.get("effects")
    if not isinstance(effects, list):
        return None
    normalized = [e for e in (normalize_effect(e) for e in effects) if e is not None]
    if not normalized:
        return None
    return {"effects": normalized}


def normalize_type_style(style):
    """Reduce a Figma ``TypeStyle`` to the fields that affect rendering."""
    if not isinstance(style, dict):
        return None
    typography = _without_none({
        "fontFamily": style.get("fontFamily"),
        "fontWeight": normalize_number(style.get("fontWeight")),
        "fontSize": normalize_number(style.get("fontSize")),
        "lineHeightPx": normalize_number(style.get("lineHeightPx")),
        "textAlignHorizontal": style.get("textAlignHorizontal"),
        "textAlignVertical": style.get("textAlignVertical"),
    })
    letter_spacing = normalize_number(style.get("letterSpacing"))
    if letter_spacing:
        typography["letterSpacing"] = letter_spacing
    paragraph_spacing = normalize_number(style.get("paragraphSpacing"))
    if paragraph_spacing:
        typography["paragraphSpacing"] = paragraph_spacing
    if style.get("textCase") not in (None, "ORIGINAL"):
        typography["textCase"] = style["textCase"]
    if style.get("textDecoration") not in (None, "NONE"):
        typography["textDecoration"] = style["textDecoration"]
    if style.get("italic") is True:
        typography["italic"] = True
    return typography or None


def extract_typography(node: dict):
    return normalize_type_style(node.get("style"))


def extract_layout(node: dict):
    if node.get("layoutMode") not in AUTO_LAYOUT_MODES:
        return None
    layout = {"direction": node["layoutMode"]}

    spacing = normalize_number(node.get("itemSpacing"))
    if spacing:
        layout["itemSpacing"] = spacing

    padding = {
        side: normalize_number(node.get(key) or 0)
        for side, key in (
            ("top", "paddingTop"),
            ("right", "paddingRight"),
            ("bottom", "paddingBottom"),
            ("left", "paddingLeft"),
        )
    }
    if any(padding.values()):
        layout["padding"] = padding

    for key in ("primaryAxisAlignItems", "counterAxisAlignItems"):
        if node.get(key) not in (None, "MIN"):
            layout[key] = node[key]
    if node.get("layoutWrap") not in (None, "NO_WRAP"):
        layout["layoutWrap"] = node["layoutWrap"]
        counter_spacing = normalize_number(node.get("counterAxisSpacing"))
        if counter_spacing:
            layout["counterAxisSpacing"] = counter_spacing
    return layout


EXTRACTORS = {
    "fill": extract_fill,
    "stroke": extract_stroke,
    "effect": extract_effect,
    "typography": extract_typography,
    "layout": extract_layout,
}


def extract_styles(node: dict) -> dict:
    """Return the canonical style of every category present on ``node``."""
    if not isinstance(node, dict):
        return {}
    styles = {}
    for category in CATEGORIES:
        style = EXTRACTORS[category](node)
        if style is not None:
            styles[category] = style
    return styles
