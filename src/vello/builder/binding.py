"""Table-cell binder - variable bindings, label cells and value resolution.

A table cell shows literal content, is bound to exactly one variable, or is
a label cell. Label cells generate a family of derived variable keys scoped
under their ``label_id`` so that a single "Regular Hours" row yields
``{{regularHours.hours}}``, ``{{regularHours.rate}}``, ``{{regularHours.amount}}``
and so on without separate configuration.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from vello.models import (
    STANDARD_VARIABLES,
    Block,
    ContainerBlock,
    ImageBlock,
    TableBlock,
    TableCell,
    TableRow,
    TemplateVariable,
    TextBlock,
    iter_blocks,
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([\w.]+)\}\}")

# Derived variables for a label cell; empty suffix is the primary value
FIELD_SUFFIXES: list[tuple[str, str]] = [
    ("", "(Value)"),
    ("hours", "Hours"),
    ("rate", "Rate"),
    ("amount", "Amount"),
    ("total", "Total"),
    ("quantity", "Quantity"),
    ("days", "Days"),
]

# Logical order for suffixes when listing used variables
SUFFIX_ORDER = ["days", "quantity", "hours", "rate", "amount", "total"]

CUSTOM_CATEGORY = "custom"


@dataclass(frozen=True)
class VariableSuggestion:
    """A variable ranked against a cell's free-text content."""

    variable: TemplateVariable
    score: float


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def strip_braces(key: str) -> str:
    """Turn '{{employee.name}}' into 'employee.name'."""
    return key.replace("{", "").replace("}", "")


def variable_key(path: str) -> str:
    """Turn 'employee.name' into '{{employee.name}}'."""
    return "{{" + strip_braces(path) + "}}"


def custom_variable_key(raw: str) -> Optional[str]:
    """Normalize a user-typed dictionary key, or None if it is blank."""
    clean = strip_braces(raw.strip())
    if not clean:
        return None
    return variable_key(clean)


def generate_label_id(content: str) -> str:
    """Generate a camelCase id from label content.

    >>> generate_label_id("Regular Hours")
    'regularHours'
    """
    cleaned = re.sub(r"[^a-z0-9\s]", "", content.lower())
    words = [w for w in cleaned.split() if w]
    return "".join(w if i == 0 else w[:1].upper() + w[1:] for i, w in enumerate(words))


# ---------------------------------------------------------------------------
# Cell binding
# ---------------------------------------------------------------------------


def bind_variable(
    cell: TableCell, key: str, variables: Iterable[TemplateVariable] = ()
) -> TableCell:
    """Bind a variable to a cell.

    Display content becomes the variable's label, falling back to its key.
    Any label marking is cleared.
    """
    label = next((v.label for v in variables if v.key == key), None)
    return cell.model_copy(
        update={
            "variable": key,
            "content": label or key,
            "is_label": False,
            "label_id": None,
        }
    )


def mark_label(cell: TableCell, label_id: Optional[str] = None) -> TableCell:
    """Mark a cell as a label; any variable binding is cleared.

    The id defaults to the cell's existing id, then to one generated from
    the cell content, so variables derived from it stay valid after the
    text is edited. A blank id leaves the cell unchanged.
    """
    label_id = (label_id or cell.label_id or generate_label_id(cell.content)).strip()
    if not label_id:
        return cell
    return cell.model_copy(
        update={"is_label": True, "label_id": label_id, "variable": None}
    )


def clear_variable(cell: TableCell) -> TableCell:
    return cell.model_copy(update={"variable": None, "is_label": False})


def remove_label(cell: TableCell) -> TableCell:
    return cell.model_copy(update={"is_label": False, "label_id": None})


def apply_cell_updates(cell: TableCell, updates: dict[str, Any]) -> TableCell:
    """Merge arbitrary cell updates, keeping binding and label exclusive.

    Marking a label wins over a variable supplied in the same update.
    """
    merged = cell.model_copy(update=updates)
    if updates.get("is_label"):
        return merged.model_copy(update={"variable": None})
    if updates.get("variable"):
        return merged.model_copy(update={"is_label": False, "label_id": None})
    return merged


# ---------------------------------------------------------------------------
# Variable catalogs
# ---------------------------------------------------------------------------


def label_variables(cell: TableCell) -> list[TemplateVariable]:
    """Derived variables generated by one label cell."""
    if not cell.has_label_id:
        return []
    variables = []
    for suffix, suffix_label in FIELD_SUFFIXES:
        if suffix:
            key = variable_key(f"{cell.label_id}.{suffix}")
            label = f"{cell.content} - {suffix_label}"
        else:
            key = variable_key(cell.label_id)
            label = cell.content
        variables.append(TemplateVariable(key=key, label=label, category=CUSTOM_CATEGORY))
    return variables


def dynamic_variables(rows: Iterable[TableRow]) -> list[TemplateVariable]:
    """Derived variables for every label cell in some rows."""
    variables = []
    for row in rows:
        for cell in row.cells:
            variables.extend(label_variables(cell))
    return variables


def available_variables(
    blocks: list[Block], extra: Iterable[TemplateVariable] = ()
) -> list[TemplateVariable]:
    """Standard, extra (e.g. organization) and label-derived variables."""
    derived = []
    for block in iter_blocks(blocks):
        if isinstance(block, TableBlock):
            derived.extend(dynamic_variables(block.properties.rows))
    return [*STANDARD_VARIABLES, *extra, *derived]


def group_by_category(
    variables: Iterable[TemplateVariable],
) -> dict[str, list[TemplateVariable]]:
    """Group variables by category, preserving first-seen order."""
    groups: dict[str, list[TemplateVariable]] = {}
    for variable in variables:
        groups.setdefault(variable.category, []).append(variable)
    return groups


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def match_score(content: str, variable: TemplateVariable) -> float:
    """Score (0-100) how well a variable matches a cell's content."""
    if not content:
        return 0.0

    text = content.lower().strip()
    if not text:
        return 0.0
    label = variable.label.lower()
    key_name = strip_braces(variable.key).lower().split(".")[-1]

    if label == text:
        return 100.0
    if key_name == text:
        return 95.0
    if label.startswith(text):
        return 80.0
    if key_name.startswith(text):
        return 75.0
    if text in label:
        return 60.0
    if text in key_name:
        return 55.0

    content_words = text.split()
    label_words = label.split()
    matching = [
        w for w in content_words if any(lw in w or w in lw for lw in label_words)
    ]
    if matching:
        return 30.0 + (len(matching) / len(content_words)) * 20.0

    return 0.0


def suggest_variables(
    content: str, variables: Iterable[TemplateVariable], limit: int = 5
) -> list[VariableSuggestion]:
    """Top non-zero matches for a cell's content, best first."""
    scored = [VariableSuggestion(v, match_score(content, v)) for v in variables]
    scored = [s for s in scored if s.score > 0]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:limit]


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def resolve_path(data: Any, path: str) -> Any:
    """Walk a dot-delimited path into nested mappings; None if any segment is missing."""
    value = data
    for segment in strip_braces(path).split("."):
        if not isinstance(value, Mapping) or segment not in value:
            return None
        value = value[segment]
    return value


def lookup_value(data: Mapping[str, Any], key: str) -> Any:
    """Find a value by full key, bare key, then nested path."""
    if key in data:
        return data[key]
    bare = strip_braces(key)
    if bare in data:
        return data[bare]
    return resolve_path(data, bare)


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve_cell_value(cell: TableCell, data: Optional[Mapping[str, Any]]) -> str:
    """Value displayed for a cell at preview/render time.

    A bound cell walks its key path into ``data``; the literal content is
    shown when resolution fails at any segment.
    """
    if cell.is_bound and data is not None:
        value = resolve_path(data, cell.variable)
        if value is not None:
            return format_value(value)
    return cell.content


def _fill_placeholders(text: str, data: Mapping[str, Any]) -> str:
    def replace(match: re.Match) -> str:
        value = lookup_value(data, match.group(0))
        return match.group(0) if value is None else format_value(value)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def apply_data_to_blocks(blocks: list[Block], data: Mapping[str, Any]) -> list[Block]:
    """Return copies of blocks with variables replaced by values from ``data``.

    Bound table cells take their value directly; otherwise ``{{var}}``
    placeholders are replaced inside cell content, text content and image
    sources. Unknown placeholders are left as they are.
    """
    filled = []
    for block in blocks:
        if isinstance(block, ContainerBlock) and block.has_children:
            children = apply_data_to_blocks(block.properties.children, data)
            block = block.model_copy(
                update={"properties": block.properties.model_copy(update={"children": children})}
            )
        elif isinstance(block, TableBlock):
            block = block.model_copy(deep=True)
            for _, _, cell in block.properties.iter_cells():
                value = lookup_value(data, cell.variable) if cell.is_bound else None
                if value is not None:
                    cell.content = format_value(value)
                elif cell.content:
                    cell.content = _fill_placeholders(cell.content, data)
        elif isinstance(block, TextBlock) and block.properties.content:
            block = block.model_copy(
                update={
                    "properties": block.properties.model_copy(
                        update={"content": _fill_placeholders(block.properties.content, data)}
                    )
                }
            )
        elif isinstance(block, ImageBlock) and block.properties.src:
            block = block.model_copy(
                update={
                    "properties": block.properties.model_copy(
                        update={"src": _fill_placeholders(block.properties.src, data)}
                    )
                }
            )
        filled.append(block)
    return filled


# ---------------------------------------------------------------------------
# Used variables
# ---------------------------------------------------------------------------


def _suffix_index(key: str) -> int:
    suffix = strip_braces(key).split(".")[-1].lower()
    return SUFFIX_ORDER.index(suffix) if suffix in SUFFIX_ORDER else len(SUFFIX_ORDER)


def extract_used_variables(blocks: list[Block]) -> list[TemplateVariable]:
    """List the variables bound anywhere in a template.

    Labels come, in order of preference, from the cell just left of the bound
    cell, the standard catalog, the label cell that owns a derived key, and
    finally the last key segment. Results are grouped by key base in order of
    first appearance and sorted by suffix within a group.
    """
    order: list[str] = []
    inferred: dict[str, str] = {}
    label_map: dict[str, str] = {}

    for block in iter_blocks(blocks):
        if not isinstance(block, TableBlock):
            continue
        for row in block.properties.rows:
            for index, cell in enumerate(row.cells):
                if cell.is_bound:
                    if cell.variable not in order:
                        order.append(cell.variable)
                    if index > 0:
                        previous = row.cells[index - 1]
                        if previous.content and not previous.is_bound:
                            clean = re.sub(r"[:：]", "", previous.content).strip()
                            if clean:
                                inferred[cell.variable] = clean
                if cell.has_label_id:
                    label_map[cell.label_id] = cell.content

    standard = {v.key: v for v in STANDARD_VARIABLES}
    found: list[TemplateVariable] = []
    for key in order:
        known = standard.get(key)
        category = known.category if known else CUSTOM_CATEGORY
        if key in inferred:
            found.append(TemplateVariable(key=key, label=inferred[key], category=category))
            continue
        if known:
            found.append(TemplateVariable(key=key, label=known.label, category=category))
            continue

        path = strip_braces(key).split(".")
        owner = label_map.get(path[0])
        if owner and len(path) == 1:
            label = owner
        elif owner and len(path) == 2:
            label = f"{owner} - {path[1][:1].upper()}{path[1][1:]}"
        else:
            label = path[-1] or key
        found.append(TemplateVariable(key=key, label=label, category=CUSTOM_CATEGORY))

    groups: dict[str, list[TemplateVariable]] = {}
    for variable in found:
        base = strip_braces(variable.key).split(".")[0]
        groups.setdefault(base, []).append(variable)

    result = []
    for members in groups.values():
        result.extend(sorted(members, key=lambda v: _suffix_index(v.key)))
    return result
