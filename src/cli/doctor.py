"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from adapters.docker_engine import DockerCLIEngine
from adapters.http_client import probe_url
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_engine(settings: AppSettings) -> tuple[bool, str]:
    engine = DockerCLIEngine(settings)
    if engine.is_available():
        return True, f"`{settings.engine_binary} info` succeeded"
    return False, f"`{settings.engine_binary}` is not running or not installed"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="mcphub Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    ok_engine, detail_engine = _check_engine(settings)
    table.add_row("Container engine", "OK" if ok_engine else "FAIL", detail_engine)

    table.add_row("Storage bucket", "OK", settings.storage_bucket)
    table.add_row("Storage region", "OK" if settings.storage_region else "DEFAULT", settings.storage_region or "boto3 default chain")

    if settings.storage_endpoint_url:
        ok_http, detail_http = probe_url(settings.storage_endpoint_url, settings)
        table.add_row("Storage endpoint", "OK" if ok_http else "FAIL", detail_http)
    else:
        table.add_row("Storage endpoint", "DEFAULT", "AWS S3")

    table.add_row("Work root", "OK", str(settings.work_root))

    _console.print(table)

    if not ok_engine:
        _console.print(
            "\n[yellow]Note:[/yellow] `push`, `pull` and `run` need a running container engine."
        )


@app.command(name="setup-storage")
def setup_storage() -> None:
    """Interactive storage setup (stores config in the user config .env)."""

    settings = AppSettings()

    bucket = typer.prompt("Bucket", default=settings.storage_bucket, show_default=True).strip()
    region = typer.prompt("Region (blank for default)", default=settings.storage_region or "", show_default=False).strip()
    endpoint = typer.prompt(
        "Endpoint URL (blank for AWS)",
        default=settings.storage_endpoint_url or "",
        show_default=False,
    ).strip()
    author = typer.prompt("Default author", default=settings.default_author, show_default=True).strip()

    if not bucket:
        raise typer.BadParameter("bucket is required")

    env_path = write_user_env_vars(
        {
            "MCPHUB_STORAGE_BUCKET": bucket,
            "MCPHUB_STORAGE_REGION": region or None,
            "MCPHUB_STORAGE_ENDPOINT_URL": endpoint or None,
            "MCPHUB_DEFAULT_AUTHOR": author or None,
        }
    )

    _console.print(f"[green]Saved storage config to:[/green] {env_path}")
