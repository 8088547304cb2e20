# slidegen/schemas/content.py
"""
Pydantic v2 models for the presentation content tree.

A slide (`LayoutNode`) owns a single root `column` node. Every node is one of
three shapes, chosen from its `type` and the shape of its `content`:

- LeafNode:  static element (title, paragraph, image, ...), content is text
- GroupNode: container with an ordered list of children
- WrapNode:  container with exactly one nested child

Usage:
- slides = LAYOUT_SET.validate_python(payload)
- LAYOUT_SET.dump_python(slides, mode="json", exclude_none=True)
"""
from __future__ import annotations

import uuid
from typing import Annotated, Any, List, Literal, Optional, Union, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)

LayoutType = Literal[
    "accentLeft",
    "accentRight",
    "imageAndText",
    "textAndImage",
    "twoColumns",
    "twoColumnsWithHeadings",
    "threeColumns",
    "threeColumnsWithHeadings",
    "fourColumns",
    "twoImageColumns",
    "threeImageColumns",
    "fourImageColumns",
    "tableLayout",
    "blank-card",
]

ContainerType = Literal["column", "resizable-column"]

LeafType = Literal[
    "heading1",
    "heading2",
    "heading3",
    "heading4",
    "title",
    "paragraph",
    "table",
    "image",
    "blockquote",
    "numberedList",
    "bulletList",
    "todoList",
    "calloutBox",
    "codeBlock",
    "tableOfContents",
    "divider",
]

LAYOUT_TYPES: tuple[str, ...] = get_args(LayoutType)
CONTAINER_TYPES: tuple[str, ...] = get_args(ContainerType)
LEAF_TYPES: tuple[str, ...] = get_args(LeafType)
CONTENT_TYPES: tuple[str, ...] = LEAF_TYPES + CONTAINER_TYPES


def new_id() -> str:
    return str(uuid.uuid4())


def coerce_id(v: Any) -> Any:
    """Blank ids get a fresh UUID; integer ids become strings."""
    if v is None or v == "":
        return new_id()
    if isinstance(v, int):
        return str(v)
    return v


class _NodeBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id, description="Unique within the tree")
    name: Optional[str] = None
    alt: Optional[str] = None
    placeholder: Optional[str] = None
    className: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return coerce_id(v)


class LeafNode(_NodeBase):
    type: LeafType
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _flatten(cls, v: Any) -> Any:
        # Models often emit list items as ["a", "b"] and tables as rows of cells.
        if v is None:
            return ""
        if isinstance(v, list):
            rows: list[str] = []
            for item in v:
                if isinstance(item, str):
                    rows.append(item)
                elif isinstance(item, list) and all(isinstance(c, str) for c in item):
                    rows.append(" | ".join(item))
                else:
                    return v
            return "\n".join(rows)
        return v


class GroupNode(_NodeBase):
    type: ContainerType
    content: List[ContentNode] = Field(default_factory=list)


class WrapNode(_NodeBase):
    type: ContainerType
    content: ContentNode


def _node_kind(v: Any) -> str:
    if isinstance(v, dict):
        node_type, content = v.get("type"), v.get("content")
    else:
        node_type, content = getattr(v, "type", None), getattr(v, "content", None)
    if node_type in CONTAINER_TYPES:
        return "wrap" if isinstance(content, (dict, BaseModel)) else "group"
    return "leaf"


ContentNode = Annotated[
    Union[
        Annotated[LeafNode, Tag("leaf")],
        Annotated[GroupNode, Tag("group")],
        Annotated[WrapNode, Tag("wrap")],
    ],
    Discriminator(_node_kind),
]

GroupNode.model_rebuild()
WrapNode.model_rebuild()


class LayoutNode(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    slideName: str = ""
    type: LayoutType
    className: Optional[str] = None
    content: ContentNode

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return coerce_id(v)

    @model_validator(mode="after")
    def _root_is_column(self) -> "LayoutNode":
        if self.content.type != "column":
            raise ValueError(f"slide root must be a 'column' node, got {self.content.type!r}")
        return self


class OutlinePayload(BaseModel):
    outlines: List[str] = Field(..., min_length=6)

    @field_validator("outlines")
    @classmethod
    def _non_blank(cls, v: List[str]) -> List[str]:
        out = [s.strip() for s in v]
        if any(not s for s in out):
            raise ValueError("outline points must be non-empty strings")
        return out


LAYOUT_SET = TypeAdapter(List[LayoutNode])


def dump_slides(slides: List[LayoutNode]) -> list[dict]:
    return LAYOUT_SET.dump_python(slides, mode="json", exclude_none=True)
