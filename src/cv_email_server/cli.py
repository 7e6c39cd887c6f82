"""CV Email Server CLI.

Usage:
    cv-email-server serve                  # Run the HTTP server
    cv-email-server serve --port 9000      # Custom port
    cv-email-server health                 # Check a running server
    cv-email-server resume show            # Print the stored resume
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import httpx

from .config import ServerConfig, load_env_file
from .resume_store import ResumeStore


@click.group()
def main() -> None:
    """CV Email Server - resume Q&A and email over JSON-RPC.

    Settings come from the environment, with a .env file in the working
    directory filling in anything not already set.
    """
    load_env_file()


@main.command()
@click.option("--host", default=None, help="Host to bind to (default: $HOST or 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: $PORT or 8787)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the HTTP server."""
    import uvicorn

    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    host = host or config.host
    port = port or config.port
    click.echo(f"Starting CV email server on http://{host}:{port}", err=True)
    click.echo("  Streamable HTTP: /mcp   SSE: /sse", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        "cv_email_server.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@main.command()
@click.option("--url", default="http://localhost:8787", help="Server URL")
def health(url: str) -> None:
    """Check server health."""

    async def check() -> None:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{url}/health")
                if response.status_code == 200:
                    click.echo(f"Server is healthy: {response.json()}")
                else:
                    click.echo(f"Server returned {response.status_code}", err=True)
                    sys.exit(1)
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            sys.exit(1)

    asyncio.run(check())


@main.group()
def resume() -> None:
    """Inspect the stored resume."""


@resume.command("show")
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Resume file (default: $RESUME_PATH or data/resume.json)",
)
def resume_show(path: Path | None) -> None:
    """Print the persisted resume, or the empty default if none is stored.

    Examples:

        cv-email-server resume show
        cv-email-server resume show --path ./my-resume.json
    """
    store = ResumeStore(path or ServerConfig.from_env().resume_path)
    click.echo(json.dumps(store.load(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
