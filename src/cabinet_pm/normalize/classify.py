"""
Best-effort keyword classifiers for inventory nodes.

Node inventories come from exported system registries where the same kind of
node may be described by a short hardware code in `node_type`, a site naming
convention in `node_name`, or a marketing description in `model`. None of
these are an exact taxonomy; the helpers below match case-insensitive
substrings and always land in a defined fallback.
"""
from __future__ import annotations

import re
from typing import Optional, Protocol, Tuple

from .schema import NodeCategory


class NodeLike(Protocol):
    node_name: Optional[str]
    node_type: Optional[str]
    model: Optional[str]


CONTROLLER_TYPE_KEYWORDS: Tuple[str, ...] = ("controller", "cioc", "sis", "eioc")
CONTROLLER_NAME_KEYWORDS: Tuple[str, ...] = ("csls", "-sz", "eioc")
CONTROLLER_MODEL_KEYWORDS: Tuple[str, ...] = ("se4101", "ve4021")
# Site convention for S-series controllers: "...sz01", "...sz02", ...
CONTROLLER_NAME_PATTERN = re.compile(r"sz0[1-9]")

WORKSTATION_TYPE_KEYWORDS: Tuple[str, ...] = (
    "workstation",
    "computer",
    "pc",
    "local application",
    "local operator",
    "local professionalplus",
    "hmi",
    "operator",
)
WORKSTATION_NAME_KEYWORDS: Tuple[str, ...] = ("cpu", "hmi", "workstation", "operator")

SWITCH_TYPE_KEYWORDS: Tuple[str, ...] = ("switch", "network")

DEFAULT_CONTROLLER_TYPE = "Controller"


def _lower(value: Optional[str]) -> str:
    return (value or "").lower()


def _any_in(text: str, keywords: Tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def is_controller(node: NodeLike) -> bool:
    node_type, name, model = _lower(node.node_type), _lower(node.node_name), _lower(node.model)
    return (
        _any_in(node_type, CONTROLLER_TYPE_KEYWORDS)
        or _any_in(name, CONTROLLER_NAME_KEYWORDS)
        or _any_in(model, CONTROLLER_MODEL_KEYWORDS)
        or CONTROLLER_NAME_PATTERN.search(name) is not None
    )


def is_workstation(node: NodeLike) -> bool:
    node_type, name = _lower(node.node_type), _lower(node.node_name)
    return _any_in(node_type, WORKSTATION_TYPE_KEYWORDS) or _any_in(name, WORKSTATION_NAME_KEYWORDS)


def is_switch(node: NodeLike) -> bool:
    return _any_in(_lower(node.node_type), SWITCH_TYPE_KEYWORDS)


def classify_node(node: NodeLike) -> NodeCategory:
    """
    Bucket a node for the maintenance tables. Checks run controller first,
    then workstation, then switch; anything unmatched is OTHER.
    """
    if is_controller(node):
        return NodeCategory.CONTROLLER
    if is_workstation(node):
        return NodeCategory.WORKSTATION
    if is_switch(node):
        return NodeCategory.SWITCH
    return NodeCategory.OTHER


def _known_controller_type(node: NodeLike) -> Optional[str]:
    node_type, name, model = _lower(node.node_type), _lower(node.node_name), _lower(node.model)
    if "ve4021" in model:
        return "RIU"
    if "se4101" in model:
        return "EIOC"
    if "eioc" in node_type or "eioc" in name or "eioc" in model:
        return "EIOC"
    # CIOC2 first: every CIOC2 type string also contains "cioc".
    if "deltav charm io card 2" in node_type or "cioc2" in node_type:
        return "CIOC2"
    if "deltav charm io card" in node_type or "cioc" in node_type:
        return "CIOC"
    return None


def controller_type(node: Optional[NodeLike]) -> str:
    """Normalized controller type for maintenance tables."""
    if node is None:
        return DEFAULT_CONTROLLER_TYPE
    return _known_controller_type(node) or DEFAULT_CONTROLLER_TYPE


def enhanced_controller_type(node: NodeLike) -> str:
    """Like controller_type, but keeps the node's own type before the generic fallback."""
    known = _known_controller_type(node)
    if known:
        return known
    return (node.node_type or "").strip() or DEFAULT_CONTROLLER_TYPE


def errors_label(no_errors_checked: Optional[bool]) -> str:
    """
    Errors column for controllers. The capture form stores a ticked "Errors"
    box as no_errors_checked=False, so False is the only value that renders
    as having errors; unset is treated as clean.
    """
    if no_errors_checked is None or no_errors_checked:
        return "No Error"
    return "Has Errors"
