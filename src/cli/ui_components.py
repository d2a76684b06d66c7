"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import BuildResult, ServerDescriptor


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("mcphub", style="bold cyan")
    subtitle = Text("Build • Package • Share MCP servers", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_result_table(result: BuildResult, *, published_as: str | None = None) -> Table:
    """Tabla con las rutas y metadatos de un `push`."""

    table = Table(title="Build result", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Extracted to", str(result.extracted_path))
    table.add_row("Dockerfile", str(result.descriptor_path))
    table.add_row("Image name", result.image_tag)
    if published_as:
        table.add_row("Uploaded to", published_as)
    else:
        table.add_row("Image archive", str(result.archive_path))

    _add_descriptor_rows(table, result.descriptor)
    return table


def _add_descriptor_rows(table: Table, descriptor: ServerDescriptor) -> None:
    label = descriptor.name
    if descriptor.version:
        label = f"{label} v{descriptor.version}"
    table.add_row("MCP server", label)
    if descriptor.description:
        table.add_row("Description", descriptor.description)
    if descriptor.author:
        table.add_row("Author", descriptor.author)
    if descriptor.keywords:
        table.add_row("Keywords", ", ".join(descriptor.keywords))


def build_manifest_panel(descriptor: ServerDescriptor) -> Panel:
    """Resumen del manifest recién creado con `init`."""

    body = Text()
    body.append(f"Project: {descriptor.name} v{descriptor.version}\n")
    if descriptor.description:
        body.append(f"Description: {descriptor.description}\n")
    run_line = " ".join([descriptor.run.command, *descriptor.run.args])
    body.append(f"Run: {run_line}", style="bold")
    if descriptor.run.port:
        body.append(f"\nPort: {descriptor.run.port}", style="dim")
    return Panel(body, title=Text("mcp.json", style="bold green"), border_style="green")


def build_published_table(references: list[str]) -> Table:
    table = Table(title="Published MCP servers")
    table.add_column("Reference", style="cyan", no_wrap=True)
    for reference in references:
        table.add_row(reference)
    return table
