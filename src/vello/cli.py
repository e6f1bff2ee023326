"""Vello template builder CLI."""

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from vello.builder import binding
from vello.config import settings
from vello.logging_config import setup_logging
from vello.models import ContainerBlock, TableBlock, TemplateSchema, iter_blocks
from vello.storage import DraftRepository, draft_age, get_session, init_db

app = typer.Typer(
    name="vello",
    help="Inspect, fill and recover Vello document templates",
    add_completion=False,
)
drafts_app = typer.Typer(help="Inspect the autosaved draft store")
app.add_typer(drafts_app, name="drafts")

console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default from settings)"),
) -> None:
    setup_logging(log_level)


def _load_schema(path: Path) -> TemplateSchema:
    try:
        return TemplateSchema.from_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        console.print(f"[bold red]Cannot read {path}:[/bold red] {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        console.print(f"[bold red]Invalid template {path}:[/bold red]")
        console.print(str(e), markup=False)
        raise typer.Exit(1)


@app.command()
def inspect(
    template_path: Path = typer.Argument(..., help="Template schema JSON file"),
    tables: bool = typer.Option(False, "--tables", help="Print table contents"),
) -> None:
    """Summarize the blocks and variables of a template."""
    schema = _load_schema(template_path)

    table = Table(title=f"Blocks in {template_path.name}")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("Children", justify="right")

    for block in iter_blocks(schema.blocks):
        style = block.style
        children = (
            str(len(block.properties.children)) if isinstance(block, ContainerBlock) else ""
        )
        table.add_row(
            block.id,
            block.type,
            f"{style.x:.0f}",
            f"{style.y:.0f}",
            f"{style.width:.0f}",
            f"{style.height:.0f}",
            children,
        )
    console.print(table)

    used = binding.extract_used_variables(schema.blocks)
    console.print(
        f"[bold]Template type:[/bold] {schema.template_type.value if schema.template_type else '-'}"
    )
    console.print(f"[bold]Guides:[/bold] {len(schema.guides)}")
    console.print(f"[bold]Variables used:[/bold] {len(used)}")

    if tables:
        for block in iter_blocks(schema.blocks):
            if isinstance(block, TableBlock):
                console.print(f"\n[bold blue]Table {block.id}[/bold blue]")
                console.print(block.properties.to_markdown(), markup=False)


@app.command()
def variables(
    template_path: Path = typer.Argument(..., help="Template schema JSON file"),
) -> None:
    """List the variables a template binds, grouped by category."""
    schema = _load_schema(template_path)
    used = binding.extract_used_variables(schema.blocks)
    if not used:
        console.print("[yellow]No variables bound[/yellow]")
        return

    for category, members in binding.group_by_category(used).items():
        console.print(f"[bold blue]{category}[/bold blue]")
        for variable in members:
            console.print(f"  {variable.key}  [dim]{variable.label}[/dim]", highlight=False)


@app.command()
def fill(
    template_path: Path = typer.Argument(..., help="Template schema JSON file"),
    data_path: Path = typer.Argument(..., help="JSON data record"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Resolve a template's variables against a data record."""
    schema = _load_schema(template_path)
    try:
        data = json.loads(data_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[bold red]Cannot read data {data_path}:[/bold red] {e}")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[bold red]Data record must be a JSON object[/bold red]")
        raise typer.Exit(1)

    filled = schema.model_copy(
        update={"blocks": binding.apply_data_to_blocks(schema.blocks, data)}
    )
    rendered = filled.to_json(indent=2)
    if output is None:
        print(rendered)
        return
    output.write_text(rendered, encoding="utf-8")
    console.print(f"[green]Wrote {output}[/green]")


@drafts_app.command("list")
def list_drafts(
    limit: int = typer.Option(20, help="Maximum drafts to show"),
) -> None:
    """List unexpired drafts, newest first."""
    init_db()
    with get_session() as session:
        drafts = DraftRepository(session).list_recent(limit)

    if not drafts:
        console.print("[yellow]No drafts[/yellow]")
        return

    table = Table(title=f"Drafts (expire after {settings.draft_expiry_hours}h)")
    table.add_column("Template ID")
    table.add_column("Name")
    table.add_column("Blocks", justify="right")
    table.add_column("Saved")
    for draft in drafts:
        table.add_row(
            draft.template_id, draft.template_name, str(len(draft.blocks)), draft_age(draft)
        )
    console.print(table)


@drafts_app.command("show")
def show_draft(
    template_id: str = typer.Argument(..., help="Template ID"),
) -> None:
    """Print a draft as template schema JSON."""
    init_db()
    with get_session() as session:
        draft = DraftRepository(session).load(template_id)
    if draft is None:
        console.print(f"[yellow]No draft for {template_id}[/yellow]")
        raise typer.Exit(1)
    print(json.dumps(draft.to_wire(), indent=2))


@drafts_app.command("clear")
def clear_drafts(
    template_id: Optional[str] = typer.Argument(None, help="Template ID"),
    expired: bool = typer.Option(False, "--expired", help="Delete all expired drafts"),
) -> None:
    """Delete one template's draft, or every expired draft."""
    if template_id is None and not expired:
        console.print("[bold red]Give a template ID or --expired[/bold red]")
        raise typer.Exit(1)

    init_db()
    with get_session() as session:
        repo = DraftRepository(session)
        if expired:
            count = repo.purge_expired()
            console.print(f"[green]Deleted {count} expired draft(s)[/green]")
        if template_id is not None:
            if repo.clear(template_id):
                console.print(f"[green]Cleared draft for {template_id}[/green]")
            else:
                console.print(f"[yellow]No draft for {template_id}[/yellow]")


if __name__ == "__main__":
    app()
