"""Block models - positioned, styled units of template content."""

from typing import Annotated, Iterator, Literal, Optional, Union

from pydantic import Field

from .base import (
    DEFAULT_BLOCK_SIZES,
    DEFAULT_BLOCK_STYLE,
    BaseTemplateModel,
    BlockStyle,
    BlockType,
)
from .table import TableBlockProperties, TableCell, TableRow


class TextBlockProperties(BaseTemplateModel):
    """Properties of a free text block."""

    content: str = ""
    placeholder: Optional[str] = None


class ImageBlockProperties(BaseTemplateModel):
    """Properties of an image block."""

    src: str = ""
    alt: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    object_fit: Optional[Literal["cover", "contain", "fill"]] = None


class ContainerBlockProperties(BaseTemplateModel):
    """Properties of a container block.

    Children are positioned relative to the container's origin.
    """

    direction: Optional[Literal["row", "column"]] = None
    gap: Optional[float] = None
    justify_content: Optional[
        Literal["start", "center", "end", "between", "around"]
    ] = None
    align_items: Optional[Literal["start", "center", "end", "stretch"]] = None
    children: list["Block"] = Field(default_factory=list)


class DividerBlockProperties(BaseTemplateModel):
    """Properties of a horizontal rule."""

    thickness: Optional[float] = None
    color: Optional[str] = None
    style: Optional[Literal["solid", "dashed", "dotted"]] = None


class SpacerBlockProperties(BaseTemplateModel):
    """Properties of an empty spacer."""

    height: float = 20


class BlockBase(BaseTemplateModel):
    """
    Common fields of every block.

    Core unit of a template. Concrete blocks narrow ``type`` to a single
    literal so that parsing dispatches to the right properties shape.
    """

    id: str = Field(..., description="Unique block id")
    style: BlockStyle

    @property
    def has_children(self) -> bool:
        return False


class TextBlock(BlockBase):
    type: Literal["text"] = "text"
    properties: TextBlockProperties = Field(default_factory=TextBlockProperties)


class TableBlock(BlockBase):
    type: Literal["table"] = "table"
    properties: TableBlockProperties = Field(default_factory=TableBlockProperties)


class ImageBlock(BlockBase):
    type: Literal["image"] = "image"
    properties: ImageBlockProperties = Field(default_factory=ImageBlockProperties)


class ContainerBlock(BlockBase):
    type: Literal["container"] = "container"
    properties: ContainerBlockProperties = Field(
        default_factory=ContainerBlockProperties
    )

    @property
    def children(self) -> list["Block"]:
        return self.properties.children

    @property
    def has_children(self) -> bool:
        return bool(self.properties.children)


class DividerBlock(BlockBase):
    type: Literal["divider"] = "divider"
    properties: DividerBlockProperties = Field(
        default_factory=DividerBlockProperties
    )


class SpacerBlock(BlockBase):
    type: Literal["spacer"] = "spacer"
    properties: SpacerBlockProperties = Field(default_factory=SpacerBlockProperties)


Block = Annotated[
    Union[TextBlock, TableBlock, ImageBlock, ContainerBlock, DividerBlock, SpacerBlock],
    Field(discriminator="type"),
]

ContainerBlockProperties.model_rebuild()
ContainerBlock.model_rebuild()

BLOCK_CLASSES: dict[BlockType, type[BlockBase]] = {
    BlockType.TEXT: TextBlock,
    BlockType.TABLE: TableBlock,
    BlockType.IMAGE: ImageBlock,
    BlockType.CONTAINER: ContainerBlock,
    BlockType.DIVIDER: DividerBlock,
    BlockType.SPACER: SpacerBlock,
}


def default_properties(block_type: BlockType) -> BaseTemplateModel:
    """Get the default properties for a new block of the given type."""
    if block_type == BlockType.TEXT:
        return TextBlockProperties(content="Text", placeholder="Enter text...")
    if block_type == BlockType.TABLE:
        return TableBlockProperties(
            rows=[
                TableRow(
                    cells=[
                        TableCell(content="Label", is_label=True),
                        TableCell(content="", variable=""),
                    ],
                    is_header=False,
                )
                for _ in range(2)
            ],
            show_borders=True,
            striped_rows=False,
        )
    if block_type == BlockType.IMAGE:
        return ImageBlockProperties(
            src="", alt="", width="100%", height="auto", object_fit="contain"
        )
    if block_type == BlockType.CONTAINER:
        return ContainerBlockProperties(
            direction="column",
            gap=8,
            justify_content="start",
            align_items="stretch",
            children=[],
        )
    if block_type == BlockType.DIVIDER:
        return DividerBlockProperties(thickness=1, color="#e5e7eb", style="solid")
    if block_type == BlockType.SPACER:
        return SpacerBlockProperties(height=20)
    raise ValueError(f"Unknown block type: {block_type}")


def create_block(block_type: BlockType, block_id: str, x: float, y: float) -> Block:
    """Create a block with default style, size and properties at (x, y)."""
    block_type = BlockType(block_type)
    width, height = DEFAULT_BLOCK_SIZES[block_type]
    style = DEFAULT_BLOCK_STYLE.model_copy(
        update={"x": x, "y": y, "width": width, "height": height}
    )
    cls = BLOCK_CLASSES[block_type]
    return cls(id=block_id, style=style, properties=default_properties(block_type))


def iter_blocks(blocks: list[Block]) -> Iterator[Block]:
    """Walk blocks depth-first, descending into container children."""
    for block in blocks:
        yield block
        if isinstance(block, ContainerBlock):
            yield from iter_blocks(block.properties.children)
