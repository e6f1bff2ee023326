"""Table models - rows of cells bound to template variables."""

from typing import Optional

from pydantic import Field

from .base import BaseTemplateModel, CellStyle


class TableCell(BaseTemplateModel):
    """
    Individual cell in a table block.

    A cell either displays literal content, is bound to exactly one
    variable, or is a label cell whose ``label_id`` scopes a family of
    derived variable keys. A cell is never both bound and a label.
    """

    content: str = Field(default="", description="Literal or display content")
    variable: Optional[str] = Field(
        None, description="Variable key like '{{employee.name}}'"
    )
    is_label: Optional[bool] = Field(None, description="Cell is a row label")
    label_id: Optional[str] = Field(
        None, description="Id used to derive variables, e.g. regularHours.hours"
    )
    col_span: Optional[int] = Field(None, ge=1)
    row_span: Optional[int] = Field(None, ge=1)
    style: Optional[CellStyle] = None

    @property
    def is_bound(self) -> bool:
        """Check if cell is bound to a variable."""
        return bool(self.variable)

    @property
    def has_label_id(self) -> bool:
        """Check if cell is a label with an id."""
        return bool(self.is_label and self.label_id)


class TableRow(BaseTemplateModel):
    """Ordered sequence of cells."""

    cells: list[TableCell] = Field(default_factory=list)
    is_header: Optional[bool] = None


class TableBlockProperties(BaseTemplateModel):
    """Properties of a table block."""

    rows: list[TableRow] = Field(default_factory=list)
    show_borders: Optional[bool] = None
    striped_rows: Optional[bool] = None
    compact: Optional[bool] = None
    header_background: Optional[str] = None

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cols(self) -> int:
        """Column count, taken from the first row."""
        if not self.rows:
            return 0
        return len(self.rows[0].cells)

    def get_cell(self, row: int, col: int) -> Optional[TableCell]:
        """Get cell at specified row and column."""
        if not 0 <= row < len(self.rows):
            return None
        cells = self.rows[row].cells
        if not 0 <= col < len(cells):
            return None
        return cells[col]

    def iter_cells(self):
        """Yield (row_index, col_index, cell) for every cell."""
        for row_index, row in enumerate(self.rows):
            for col_index, cell in enumerate(row.cells):
                yield row_index, col_index, cell

    def to_markdown(self) -> str:
        """Convert table to markdown format."""
        if not self.rows:
            return ""

        lines = []
        width = max(len(r.cells) for r in self.rows)
        for i, row in enumerate(self.rows):
            texts = [c.content for c in row.cells] + [""] * (width - len(row.cells))
            lines.append("| " + " | ".join(texts) + " |")
            # Add separator after first row (header)
            if i == 0:
                lines.append("| " + " | ".join(["---"] * width) + " |")

        return "\n".join(lines)
