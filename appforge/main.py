"""Command line entry point: ``appforge serve`` and helpers."""

import asyncio
import json
import logging

import click

from .features.tracing import initialize_otel, shutdown_otel
from .utils.config import Settings, load_settings

logger = logging.getLogger(__name__)


def build_app(settings: Settings):
    """Wire the database, sandbox provider, worker and HTTP app together."""
    # Importing the job module registers the code-agent job
    from .functions import code_agent  # noqa: F401
    from .execution.sandbox import create_sandbox_provider
    from .runtime.server import create_app
    from .runtime.step_store import SqlStepStore
    from .runtime.worker import Worker
    from .storage.database import Database

    database = Database(settings.database_url)
    sandbox_provider = create_sandbox_provider(
        settings.sandbox_provider,
        template=settings.e2b_template,
        timeout=settings.sandbox_timeout_seconds,
        root_dir=settings.sandbox_root,
    )
    worker = Worker(
        step_store=SqlStepStore(database),
        resources={
            "database": database,
            "sandbox_provider": sandbox_provider,
            "settings": settings,
        },
        max_concurrent_jobs=settings.max_concurrent_jobs,
        max_attempts=settings.job_max_attempts,
        retained_executions=settings.retained_executions,
    )
    logger.info(
        "Built app: sandbox_provider=%s llm_provider=%s",
        settings.sandbox_provider,
        settings.llm_provider,
    )
    return create_app(worker, database, settings)


@click.group()
@click.option(
    "--env-file", type=click.Path(dir_okay=False), default=None, help="Path to a .env file"
)
@click.pass_context
def main(ctx: click.Context, env_file: str | None) -> None:
    """AppForge: generate apps in sandboxes from prompts."""
    ctx.obj = {"env_file": env_file}


@main.command()
@click.option("--host", default=None, help="Interface to bind")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.option(
    "--sandbox-provider", type=click.Choice(["e2b", "local"]), default=None, help="Sandbox backend"
)
@click.option("--log-file", default=None, help="Write logs to this file instead of stderr")
@click.pass_context
def serve(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    sandbox_provider: str | None,
    log_file: str | None,
) -> None:
    """Run the HTTP server and the job worker."""
    overrides = {
        key: value
        for key, value in {
            "host": host,
            "port": port,
            "sandbox_provider": sandbox_provider,
            "log_file": log_file,
        }.items()
        if value is not None
    }
    settings = load_settings(ctx.obj["env_file"], **overrides)

    from .runtime.server import serve as serve_app

    initialize_otel(enabled=settings.otel_enabled, service_name="appforge")
    try:
        asyncio.run(serve_app(build_app(settings), settings))
    finally:
        shutdown_otel()


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database tables."""
    from .storage.database import Database

    settings = load_settings(ctx.obj["env_file"])

    async def _create() -> None:
        database = Database(settings.database_url)
        try:
            await database.create_all()
        finally:
            await database.dispose()

    asyncio.run(_create())
    click.echo(f"Database ready: {settings.database_url}")


@main.command()
@click.argument("value")
@click.option("--project-id", default=None, help="Continue an existing project")
@click.option("--user-id", required=True, help="User the request is made for")
@click.option("--url", default="http://localhost:8000", show_default=True, help="Server URL")
def prompt(value: str, project_id: str | None, user_id: str, url: str) -> None:
    """Send a prompt to a running server."""
    from .runtime.client import AppForgeClient

    async def _send() -> dict:
        async with AppForgeClient(url, user_id=user_id) as client:
            if project_id:
                return await client.create_message(project_id, value)
            return await client.create_project(value)

    click.echo(json.dumps(asyncio.run(_send()), indent=2))


if __name__ == "__main__":
    main()
