"""Tests for the table-cell binder."""

import pytest

from vello.builder import binding
from vello.models import (
    STANDARD_VARIABLES,
    BlockStyle,
    TableBlock,
    TableBlockProperties,
    TableCell,
    TableRow,
    TemplateVariable,
)


class TestCellBinding:
    """Tests for binding and label exclusivity."""

    def test_bind_uses_variable_label(self):
        """Binding shows the variable's label as the cell content."""
        cell = TableCell(content="")
        bound = binding.bind_variable(cell, "{{employee.fullName}}", STANDARD_VARIABLES)
        assert bound.variable == "{{employee.fullName}}"
        assert bound.content == "Full Name"

    def test_bind_falls_back_to_key(self):
        bound = binding.bind_variable(TableCell(), "{{custom.thing}}", STANDARD_VARIABLES)
        assert bound.content == "{{custom.thing}}"

    def test_bind_clears_label(self):
        """A label cell loses its label marking when bound."""
        cell = TableCell(content="Basic", is_label=True, label_id="basic")
        bound = binding.bind_variable(cell, "{{netPay}}", STANDARD_VARIABLES)
        assert not bound.is_label
        assert bound.label_id is None

    def test_mark_label_clears_variable(self):
        """Marking a label removes the variable binding."""
        cell = TableCell(content="Regular Hours", variable="{{netPay}}")
        labeled = binding.mark_label(cell)
        assert labeled.is_label
        assert labeled.label_id == "regularHours"
        assert labeled.variable is None

    def test_mark_label_blank_id_is_noop(self):
        cell = TableCell(content="!!!")
        assert binding.mark_label(cell) is cell

    def test_remark_keeps_existing_id(self):
        """Editing a label's text and marking it again keeps its id."""
        cell = TableCell(content="Regular Hours", is_label=True, label_id="regularHours")
        edited = binding.apply_cell_updates(cell, {"content": "Normal Hours"})
        relabeled = binding.mark_label(edited)
        assert relabeled.label_id == "regularHours"
        assert binding.mark_label(edited, "normalHours").label_id == "normalHours"

    def test_updates_never_leave_both(self):
        """Any sequence of cell updates keeps binding and label exclusive."""
        cell = TableCell(content="x")
        for updates in (
            {"variable": "{{netPay}}"},
            {"is_label": True, "label_id": "x"},
            {"variable": "{{employee.id}}"},
            {"is_label": True, "label_id": "y", "variable": "{{netPay}}"},
        ):
            cell = binding.apply_cell_updates(cell, updates)
            assert not (cell.variable and cell.is_label)

    def test_label_wins_in_same_update(self):
        cell = binding.apply_cell_updates(
            TableCell(), {"is_label": True, "label_id": "y", "variable": "{{netPay}}"}
        )
        assert cell.is_label
        assert cell.variable is None

    def test_clear_and_remove(self):
        bound = TableCell(content="A", variable="{{netPay}}")
        assert binding.clear_variable(bound).variable is None
        labeled = TableCell(content="A", is_label=True, label_id="a")
        removed = binding.remove_label(labeled)
        assert not removed.is_label
        assert removed.label_id is None


class TestKeys:
    """Tests for key helpers."""

    def test_generate_label_id(self):
        assert binding.generate_label_id("Regular Hours") == "regularHours"
        assert binding.generate_label_id("Night-Shift Differential") == "nightshiftDifferential"

    def test_custom_variable_key(self):
        assert binding.custom_variable_key(" bonus.q1 ") == "{{bonus.q1}}"
        assert binding.custom_variable_key("{{bonus}}") == "{{bonus}}"
        assert binding.custom_variable_key("  ") is None


class TestDerivedVariables:
    """Tests for label-generated variables."""

    def test_label_family(self):
        """A label cell generates the bare key and six suffixed keys."""
        cell = TableCell(content="Regular Hours", is_label=True, label_id="regularHours")
        keys = [v.key for v in binding.label_variables(cell)]
        assert keys == [
            "{{regularHours}}",
            "{{regularHours.hours}}",
            "{{regularHours.rate}}",
            "{{regularHours.amount}}",
            "{{regularHours.total}}",
            "{{regularHours.quantity}}",
            "{{regularHours.days}}",
        ]

    def test_label_family_labels(self):
        cell = TableCell(content="Regular Hours", is_label=True, label_id="regularHours")
        variables = binding.label_variables(cell)
        assert variables[0].label == "Regular Hours"
        assert variables[1].label == "Regular Hours - Hours"
        assert all(v.category == "custom" for v in variables)

    def test_non_label_generates_nothing(self):
        assert binding.label_variables(TableCell(content="x")) == []

    def test_available_variables(self, payslip_table):
        """Standard, extra and derived variables are all offered."""
        extra = [TemplateVariable(key="{{org.code}}", label="Org Code", category="organization")]
        keys = [v.key for v in binding.available_variables([payslip_table], extra)]
        assert keys[: len(STANDARD_VARIABLES)] == [v.key for v in STANDARD_VARIABLES]
        assert "{{org.code}}" in keys
        assert "{{regularHours.rate}}" in keys

    def test_group_by_category(self):
        groups = binding.group_by_category(STANDARD_VARIABLES)
        assert list(groups)[:3] == ["employee", "period", "company"]
        assert len(groups["deductions"]) == 5


class TestSuggestions:
    """Tests for suggestion ranking."""

    def _var(self, key, label):
        return TemplateVariable(key=key, label=label, category="custom")

    def test_score_tiers(self):
        """Exact beats prefix beats substring beats word overlap."""
        var = self._var("{{earnings.basicSalary}}", "Basic Salary")
        assert binding.match_score("basic salary", var) == 100
        assert binding.match_score("basicsalary", var) == 95
        assert binding.match_score("basic", var) == 80
        assert binding.match_score("salary", var) == 60
        assert binding.match_score("monthly salary amount", var) == pytest.approx(30 + 20 / 3)
        assert binding.match_score("", var) == 0
        assert binding.match_score("zzz", var) == 0

    def test_top_five_non_zero(self):
        suggestions = binding.suggest_variables("total", STANDARD_VARIABLES)
        assert 0 < len(suggestions) <= 5
        assert all(s.score > 0 for s in suggestions)
        scores = [s.score for s in suggestions]
        assert scores == sorted(scores, reverse=True)

    def test_exact_label_first(self):
        suggestions = binding.suggest_variables("Net Pay", STANDARD_VARIABLES)
        assert suggestions[0].variable.key == "{{netPay}}"
        assert suggestions[0].score == 100


class TestValueResolution:
    """Tests for resolving cell values against data."""

    def test_nested_path(self):
        cell = TableCell(content="Name", variable="{{employee.fullName}}")
        data = {"employee": {"fullName": "Ana Cruz"}}
        assert binding.resolve_cell_value(cell, data) == "Ana Cruz"

    def test_missing_segment_shows_content(self):
        """Resolution failing at any segment falls back to the literal content."""
        cell = TableCell(content="Name", variable="{{employee.fullName}}")
        assert binding.resolve_cell_value(cell, {"employee": {}}) == "Name"
        assert binding.resolve_cell_value(cell, {}) == "Name"
        assert binding.resolve_cell_value(cell, None) == "Name"

    def test_falsy_values_resolve(self):
        cell = TableCell(content="x", variable="{{deductions.tax}}")
        assert binding.resolve_cell_value(cell, {"deductions": {"tax": 0}}) == "0"

    def test_unbound_cell(self):
        assert binding.resolve_cell_value(TableCell(content="Literal"), {"a": 1}) == "Literal"

    def test_lookup_value_precedence(self):
        """Full key, then bare key, then nested path."""
        assert binding.lookup_value({"{{netPay}}": 1, "netPay": 2}, "{{netPay}}") == 1
        assert binding.lookup_value({"netPay": 2}, "{{netPay}}") == 2
        assert binding.lookup_value({"a": {"b": 3}}, "{{a.b}}") == 3

    def test_format_value(self):
        assert binding.format_value(True) == "true"
        assert binding.format_value(12.5) == "12.5"


class TestApplyData:
    """Tests for filling a template with a data record."""

    def test_bound_cells_and_placeholders(self, payslip_table, make_text):
        header = make_text("hdr", content="Payslip for {{employee.fullName}} ({{missing}})")
        data = {
            "employee": {"fullName": "Ana Cruz"},
            "regularHours": {"hours": 80, "amount": 12000},
        }

        filled = binding.apply_data_to_blocks([header, payslip_table], data)

        assert filled[0].properties.content == "Payslip for Ana Cruz ({{missing}})"
        table = filled[1].properties
        assert table.get_cell(0, 1).content == "Ana Cruz"
        assert table.get_cell(1, 1).content == "80"
        assert table.get_cell(1, 2).content == "12000"
        assert table.get_cell(2, 1).content == "Net Pay"
        assert payslip_table.properties.get_cell(0, 1).content == "Full Name"

    def test_container_children_filled(self, make_text, make_container):
        container = make_container("g", [make_text("t", content="{{company.name}}")])
        filled = binding.apply_data_to_blocks([container], {"company": {"name": "Acme"}})
        assert filled[0].children[0].properties.content == "Acme"


class TestExtractUsedVariables:
    """Tests for listing bound variables."""

    def test_labels_and_order(self, payslip_table):
        """Labels come from the left neighbour, the catalog or the owning label."""
        used = binding.extract_used_variables([payslip_table])
        by_key = {v.key: v for v in used}

        assert [v.key for v in used] == [
            "{{employee.fullName}}",
            "{{regularHours.hours}}",
            "{{regularHours.amount}}",
            "{{netPay}}",
        ]
        assert by_key["{{employee.fullName}}"].label == "Employee"
        assert by_key["{{employee.fullName}}"].category == "employee"
        assert by_key["{{regularHours.amount}}"].label == "Regular Hours - Amount"
        assert by_key["{{regularHours.amount}}"].category == "custom"
        assert by_key["{{netPay}}"].label == "Net Pay"

    def test_suffix_order_within_group(self):
        table = TableBlock(
            id="t",
            style=BlockStyle(x=0, y=0, width=100, height=50),
            properties=TableBlockProperties(
                rows=[
                    TableRow(
                        cells=[
                            TableCell(variable="{{ot.total}}"),
                            TableCell(variable="{{ot.days}}"),
                            TableCell(variable="{{ot.rate}}"),
                        ]
                    )
                ]
            ),
        )
        keys = [v.key for v in binding.extract_used_variables([table])]
        assert keys == ["{{ot.days}}", "{{ot.rate}}", "{{ot.total}}"]

    def test_empty(self, make_text):
        assert binding.extract_used_variables([make_text("a")]) == []
