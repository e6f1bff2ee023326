"""Base models and common types for the template builder."""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Minimum geometry for general blocks
MIN_BLOCK_WIDTH = 50.0
MIN_BLOCK_HEIGHT = 20.0

# Approximately 3.78 px/mm at 96 DPI
PX_PER_MM = 3.78


class BlockType(str, Enum):
    """Types of blocks that can be placed on the canvas."""

    TEXT = "text"
    TABLE = "table"
    IMAGE = "image"
    CONTAINER = "container"
    DIVIDER = "divider"
    SPACER = "spacer"


class PaperSize(str, Enum):
    """Supported paper sizes."""

    A4 = "A4"
    LETTER = "LETTER"
    LEGAL = "LEGAL"


class Orientation(str, Enum):
    """Page orientation."""

    PORTRAIT = "PORTRAIT"
    LANDSCAPE = "LANDSCAPE"


class TemplateType(str, Enum):
    """Template type tag consumed by the document generators."""

    PAYROLL = "PAYROLL"
    GENERAL = "GENERAL"


class GuideOrientation(str, Enum):
    """Orientation of a guide line."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


# Paper dimensions in millimetres (width, height) for portrait orientation
PAPER_DIMENSIONS: dict[PaperSize, tuple[float, float]] = {
    PaperSize.A4: (210.0, 297.0),
    PaperSize.LETTER: (216.0, 279.0),
    PaperSize.LEGAL: (216.0, 356.0),
}


def canvas_size(
    paper_size: PaperSize, orientation: Orientation
) -> tuple[float, float]:
    """Get the canvas size in pixels for a paper size and orientation."""
    width_mm, height_mm = PAPER_DIMENSIONS[paper_size]
    if orientation == Orientation.LANDSCAPE:
        width_mm, height_mm = height_mm, width_mm
    return width_mm * PX_PER_MM, height_mm * PX_PER_MM


class BaseTemplateModel(BaseModel):
    """Base class for all template models.

    Attributes are snake_case in Python and camelCase on the wire, which is
    the shape the save, export and email collaborators accept.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_wire(self) -> dict:
        """Dump to the camelCase JSON-compatible form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def merged(self, changes: dict[str, Any]) -> "BaseTemplateModel":
        """Copy with some fields replaced, validating the result.

        Keys may be field names or their camelCase aliases.

        Raises:
            ValueError: If a key names no field.
            pydantic.ValidationError: If a value has the wrong type.
        """
        fields = type(self).model_fields
        names = {info.alias or name: name for name, info in fields.items()}
        data = self.model_dump()
        for key, value in changes.items():
            name = key if key in fields else names.get(key)
            if name is None:
                raise ValueError(f"Unknown field for {type(self).__name__}: {key}")
            data[name] = value
        return type(self).model_validate(data)


class BlockStyle(BaseTemplateModel):
    """Absolute position, size and visual attributes of a block."""

    # Position (absolute positioning on canvas)
    x: float = Field(..., description="Left edge in canvas pixels")
    y: float = Field(..., description="Top edge in canvas pixels")
    width: float = Field(..., description="Block width")
    height: float = Field(..., description="Block height")

    # Spacing (internal)
    padding_top: Optional[float] = None
    padding_bottom: Optional[float] = None
    padding_left: Optional[float] = None
    padding_right: Optional[float] = None

    # Typography
    font_size: Optional[float] = None
    font_weight: Optional[Literal["normal", "medium", "semibold", "bold"]] = None
    font_family: Optional[str] = None
    text_align: Optional[Literal["left", "center", "right"]] = None
    vertical_align: Optional[Literal["top", "middle", "bottom"]] = None
    color: Optional[str] = None
    line_height: Optional[float] = None

    # Background & border
    background_color: Optional[str] = None
    border_width: Optional[float] = None
    border_color: Optional[str] = None
    border_radius: Optional[float] = None
    border_style: Optional[Literal["solid", "dashed", "dotted"]] = None

    @property
    def x2(self) -> float:
        """Right edge X coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> float:
        """Bottom edge Y coordinate."""
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


class CellStyle(BaseTemplateModel):
    """Partial style override for a table cell."""

    padding_top: Optional[float] = None
    padding_bottom: Optional[float] = None
    padding_left: Optional[float] = None
    padding_right: Optional[float] = None
    font_size: Optional[float] = None
    font_weight: Optional[Literal["normal", "medium", "semibold", "bold"]] = None
    font_family: Optional[str] = None
    text_align: Optional[Literal["left", "center", "right"]] = None
    vertical_align: Optional[Literal["top", "middle", "bottom"]] = None
    color: Optional[str] = None
    background_color: Optional[str] = None
    border_width: Optional[float] = None
    border_color: Optional[str] = None


DEFAULT_BLOCK_STYLE = BlockStyle(
    x=20,
    y=20,
    width=200,
    height=40,
    padding_top=8,
    padding_bottom=8,
    padding_left=8,
    padding_right=8,
    font_size=12,
    font_weight="normal",
    text_align="left",
    vertical_align="top",
    color="#1a1a1a",
)

# Default sizes (width, height) for different block types
DEFAULT_BLOCK_SIZES: dict[BlockType, tuple[float, float]] = {
    BlockType.TEXT: (200, 40),
    BlockType.TABLE: (400, 150),
    BlockType.IMAGE: (150, 100),
    BlockType.CONTAINER: (300, 200),
    BlockType.DIVIDER: (400, 2),
    BlockType.SPACER: (100, 40),
}
