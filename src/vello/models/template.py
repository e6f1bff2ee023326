"""Template-level models: variables, guides, global styles and schema."""

import json
from typing import Optional

from pydantic import ConfigDict, Field

from .base import BaseTemplateModel, GuideOrientation, Orientation, PaperSize, TemplateType
from .block import Block


class TemplateVariable(BaseTemplateModel):
    """Named placeholder bound to a table cell and resolved at render time."""

    key: str = Field(..., description="Literal key syntax, e.g. '{{employee.name}}'")
    label: str
    category: str = Field(
        ...,
        description="employee, period, company, earnings, deductions, computed, "
        "custom or an organization-defined category",
    )
    source: Optional[str] = Field(
        None, description="'system' or 'organization' when known"
    )


class GlobalStyles(BaseTemplateModel):
    """Template-wide style defaults."""

    font_family: str = "Inter"
    font_size: float = 12
    primary_color: str = "#1a1a1a"
    secondary_color: str = "#6b7280"
    accent_color: Optional[str] = None
    background_color: Optional[str] = None
    border_color: Optional[str] = None


class Guide(BaseTemplateModel):
    """Persistent ruler-dropped alignment line, used only as a snap target."""

    id: str
    orientation: GuideOrientation
    position: float = Field(..., description="Canvas-space coordinate")


class TemplateSchema(BaseTemplateModel):
    """
    Persisted root of a template.

    This is the unit exchanged with the save endpoint, the PDF export
    renderer and the batch email sender.
    """

    blocks: list[Block] = Field(default_factory=list)
    variables: list[TemplateVariable] = Field(default_factory=list)
    guides: list[Guide] = Field(default_factory=list)
    global_styles: GlobalStyles = Field(default_factory=GlobalStyles)
    template_type: Optional[TemplateType] = None

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to the camelCase JSON wire form."""
        return json.dumps(self.to_wire(), indent=indent)

    @classmethod
    def from_json(cls, raw: str) -> "TemplateSchema":
        """Parse the JSON wire form."""
        return cls.model_validate_json(raw)


class HistorySnapshot(BaseTemplateModel):
    """Immutable deep copy of the editable state at one point in time."""

    model_config = ConfigDict(frozen=True)

    blocks: list[Block] = Field(default_factory=list)
    global_styles: GlobalStyles = Field(default_factory=GlobalStyles)
    paper_size: PaperSize = PaperSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    template_name: str = "Untitled Template"
    template_type: Optional[TemplateType] = None
    recipient_email_field: Optional[str] = None
    recipient_name_field: Optional[str] = None


DEFAULT_GLOBAL_STYLES = GlobalStyles()

STANDARD_VARIABLES: list[TemplateVariable] = [
    # Employee
    TemplateVariable(key="{{employee.id}}", label="Employee ID", category="employee"),
    TemplateVariable(key="{{employee.firstName}}", label="First Name", category="employee"),
    TemplateVariable(key="{{employee.lastName}}", label="Last Name", category="employee"),
    TemplateVariable(key="{{employee.fullName}}", label="Full Name", category="employee"),
    TemplateVariable(key="{{employee.department}}", label="Department", category="employee"),
    TemplateVariable(key="{{employee.position}}", label="Position", category="employee"),
    TemplateVariable(key="{{employee.email}}", label="Email", category="employee"),
    # Period
    TemplateVariable(key="{{period.start}}", label="Period Start", category="period"),
    TemplateVariable(key="{{period.end}}", label="Period End", category="period"),
    TemplateVariable(key="{{period.month}}", label="Pay Month", category="period"),
    TemplateVariable(key="{{period.year}}", label="Pay Year", category="period"),
    # Company
    TemplateVariable(key="{{company.name}}", label="Company Name", category="company"),
    TemplateVariable(key="{{company.address}}", label="Company Address", category="company"),
    TemplateVariable(key="{{company.logo}}", label="Company Logo", category="company"),
    # Earnings
    TemplateVariable(key="{{earnings.basicSalary}}", label="Basic Salary", category="earnings"),
    TemplateVariable(key="{{earnings.overtime}}", label="Overtime Pay", category="earnings"),
    TemplateVariable(key="{{earnings.allowances}}", label="Allowances", category="earnings"),
    TemplateVariable(key="{{earnings.bonus}}", label="Bonus", category="earnings"),
    TemplateVariable(key="{{earnings.total}}", label="Total Earnings", category="earnings"),
    # Deductions
    TemplateVariable(key="{{deductions.sss}}", label="SSS", category="deductions"),
    TemplateVariable(key="{{deductions.philhealth}}", label="PhilHealth", category="deductions"),
    TemplateVariable(key="{{deductions.pagibig}}", label="Pag-IBIG", category="deductions"),
    TemplateVariable(key="{{deductions.tax}}", label="Withholding Tax", category="deductions"),
    TemplateVariable(key="{{deductions.total}}", label="Total Deductions", category="deductions"),
    # Computed
    TemplateVariable(key="{{netPay}}", label="Net Pay", category="computed"),
    TemplateVariable(key="{{currentDate}}", label="Current Date", category="computed"),
]


class TemplateDraft(BaseTemplateModel):
    """Unsaved builder state for one template, kept by the draft store."""

    template_id: str
    template_name: str
    blocks: list[Block] = Field(default_factory=list)
    global_styles: GlobalStyles = Field(default_factory=GlobalStyles)
    paper_size: PaperSize = PaperSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    guides: list[Guide] = Field(default_factory=list)
    saved_at: float = Field(0.0, description="Unix timestamp in seconds")

    def payload(self) -> dict:
        """Wire form of everything but the identifying columns."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"template_id", "template_name", "saved_at"},
        )
