# slidegen/plugins/slides_generate/walker.py
from __future__ import annotations

from typing import Callable, Iterator, List, Union

from slidegen.core.logging import get_logger
from slidegen.schemas.content import (
    GroupNode,
    LayoutNode,
    LeafNode,
    WrapNode,
    new_id,
)

log = get_logger(__name__)

AnyNode = Union[LeafNode, GroupNode, WrapNode]


def walk(node: AnyNode) -> Iterator[AnyNode]:
    """Pre-order traversal: the node first, then its children in order."""
    stack: List[AnyNode] = [node]
    while stack:
        cur = stack.pop()
        yield cur
        content = cur.content
        if isinstance(content, list):
            stack.extend(reversed(content))
        elif isinstance(content, (LeafNode, GroupNode, WrapNode)):
            stack.append(content)
        # str content: leaf, nothing below


def find_nodes(node: AnyNode, predicate: Callable[[AnyNode], bool]) -> List[AnyNode]:
    """
    Every node under (and including) `node` that matches `predicate`, in
    document order. The returned items are the tree's own objects, so
    mutating them mutates the tree.
    """
    return [n for n in walk(node) if predicate(n)]


def find_images(slide: LayoutNode) -> List[LeafNode]:
    return find_nodes(slide.content, lambda n: n.type == "image")  # type: ignore[return-value]


def ensure_unique_ids(slides: List[LayoutNode]) -> int:
    """
    Re-issue any slide or node id already seen earlier in the set.
    Returns the number of ids replaced.
    """
    seen: set[str] = set()
    replaced = 0
    for slide in slides:
        if slide.id in seen:
            slide.id = new_id()
            replaced += 1
        seen.add(slide.id)
        for n in walk(slide.content):
            if n.id in seen:
                n.id = new_id()
                replaced += 1
            seen.add(n.id)
    if replaced:
        log.warning("re-issued %d duplicate ids across %d slides", replaced, len(slides))
    return replaced
