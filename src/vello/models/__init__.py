"""Document models for the Vello template builder.

This module defines the Pydantic models that describe a template: blocks
with absolute geometry and style, tables of variable-bound cells, guides,
global styles and the persisted schema. All models serialize to the
camelCase JSON shape accepted by the save, export and email collaborators.

Model Hierarchy:
- TemplateSchema → Blocks → (Container) → child Blocks
- TableBlock → TableRows → TableCells → variable / label_id
- TemplateSchema → Guides, GlobalStyles, TemplateVariables
"""

from .base import (
    DEFAULT_BLOCK_SIZES,
    DEFAULT_BLOCK_STYLE,
    MIN_BLOCK_HEIGHT,
    MIN_BLOCK_WIDTH,
    PAPER_DIMENSIONS,
    PX_PER_MM,
    BaseTemplateModel,
    BlockStyle,
    BlockType,
    CellStyle,
    GuideOrientation,
    Orientation,
    PaperSize,
    TemplateType,
    canvas_size,
)
from .block import (
    BLOCK_CLASSES,
    Block,
    BlockBase,
    ContainerBlock,
    ContainerBlockProperties,
    DividerBlock,
    DividerBlockProperties,
    ImageBlock,
    ImageBlockProperties,
    SpacerBlock,
    SpacerBlockProperties,
    TableBlock,
    TextBlock,
    TextBlockProperties,
    create_block,
    default_properties,
    iter_blocks,
)
from .table import (
    TableBlockProperties,
    TableCell,
    TableRow,
)
from .template import (
    DEFAULT_GLOBAL_STYLES,
    STANDARD_VARIABLES,
    GlobalStyles,
    Guide,
    HistorySnapshot,
    TemplateDraft,
    TemplateSchema,
    TemplateVariable,
)

__all__ = [
    # Base types
    "BaseTemplateModel",
    "BlockStyle",
    "BlockType",
    "CellStyle",
    "GuideOrientation",
    "Orientation",
    "PaperSize",
    "TemplateType",
    "canvas_size",
    # Constants
    "DEFAULT_BLOCK_SIZES",
    "DEFAULT_BLOCK_STYLE",
    "DEFAULT_GLOBAL_STYLES",
    "MIN_BLOCK_HEIGHT",
    "MIN_BLOCK_WIDTH",
    "PAPER_DIMENSIONS",
    "PX_PER_MM",
    "STANDARD_VARIABLES",
    # Blocks
    "BLOCK_CLASSES",
    "Block",
    "BlockBase",
    "ContainerBlock",
    "ContainerBlockProperties",
    "DividerBlock",
    "DividerBlockProperties",
    "ImageBlock",
    "ImageBlockProperties",
    "SpacerBlock",
    "SpacerBlockProperties",
    "TableBlock",
    "TextBlock",
    "TextBlockProperties",
    "create_block",
    "default_properties",
    "iter_blocks",
    # Table
    "TableBlockProperties",
    "TableCell",
    "TableRow",
    # Template
    "GlobalStyles",
    "Guide",
    "HistorySnapshot",
    "TemplateDraft",
    "TemplateSchema",
    "TemplateVariable",
]
