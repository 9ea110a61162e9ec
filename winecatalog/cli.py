"""
Wine Catalog - Command Line

    catalog serve [--host HOST] [--port PORT] [--reload]
    catalog init-db
    catalog check-config [--json-output]
"""

from __future__ import annotations

import json

import click

from .config import configure_logging, effective_config, get_settings, validate_required_env


@click.group()
def main() -> None:
    """Wine Catalog service commands."""


@main.command()
@click.option("--host", default=None, help="Bind host (defaults to HOST).")
@click.option("--port", default=None, type=int, help="Bind port (defaults to PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes (development).")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "winecatalog.main:app",
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


@main.command("init-db")
def init_db() -> None:
    """Create the catalog tables and indexes if they do not exist."""
    from .schema import apply_schema

    settings = get_settings()
    configure_logging(settings)
    count = apply_schema(settings.supabase_db_url)
    click.echo(f"[init-db] applied {count} statements")


@main.command("check-config")
@click.option("--json-output", is_flag=True, help="Emit the effective config as JSON.")
def check_config(json_output: bool) -> None:
    """Validate required environment variables and show the effective config."""
    result = validate_required_env(fail_fast=False)
    if json_output:
        click.echo(json.dumps(effective_config(), indent=2, default=str))
    else:
        for name in result["present"]:
            click.echo(f"[check-config] present: {name}")
        for name in result["missing"]:
            click.echo(f"[check-config] MISSING: {name}")
        for warning in result["warnings"]:
            click.echo(f"[check-config] warning: {warning}")

    if not result["valid"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
