"""Development CLI commands."""

import typer
from rich.panel import Panel

from src.catalog.core.security import Role, normalize_role
from src.catalog.core.services import JwtGeneratorService
from src.catalog.runtime.context import get_config
from src.catalog.runtime.settings import EnvironmentVariables

from .utils import console

dev_app = typer.Typer(help="🚀 Development commands")


@dev_app.command(name="token")
def token(
    subject: str = typer.Option(..., "--subject", "-s", help="Token subject (user id)"),
    role: list[str] = typer.Option(
        [Role.USER.value],
        "--role",
        "-r",
        help="Role to grant; repeat for several roles",
    ),
    ttl: int | None = typer.Option(
        None, "--ttl", help="Lifetime in seconds (defaults to jwt.token_ttl_seconds)"
    ),
) -> None:
    """
    🔑 Mint a signed bearer token for local testing.

    Uses the configured signing secret, issuer and audience, so the token is
    accepted by a server running with the same configuration.
    """
    prefix = get_config().catalog.role_prefix
    unknown = [r for r in role if normalize_role(r, prefix) not in set(Role)]
    if unknown:
        console.print(
            f"[yellow]⚠️  Unknown role(s) {', '.join(unknown)}; "
            "the access policy will ignore them[/yellow]"
        )

    access_token = JwtGeneratorService().generate_access_token(
        user_id=subject,
        roles=role,
        expires_in_seconds=ttl,
    )
    typer.echo(access_token)


@dev_app.command(name="serve")
def serve(
    host: str | None = typer.Option(None, help="Host to bind (defaults to app.host)"),
    port: int | None = typer.Option(None, help="Port to bind (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
    log_level: str | None = typer.Option(
        None, help="uvicorn log level (defaults to LOG_LEVEL)"
    ),
) -> None:
    """
    🚀 Start the catalog HTTP server with uvicorn.
    """
    import uvicorn

    settings = EnvironmentVariables()
    config = get_config()
    bind_host = host or config.app.host
    bind_port = port or config.app.port

    console.print(
        Panel.fit(
            f"[bold green]Starting Library Catalog Server[/bold green] ({settings.environment})",
            border_style="green",
        )
    )
    console.print(f"[blue]Server will be available at:[/blue] http://{bind_host}:{bind_port}")
    console.print("[dim]Press Ctrl+C to stop the server[/dim]")

    try:
        uvicorn.run(
            "src.catalog.api.http.app:app",
            host=bind_host,
            port=bind_port,
            reload=reload,
            reload_dirs=["src"] if reload else None,
            log_level=(log_level or settings.log_level).lower(),
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")
