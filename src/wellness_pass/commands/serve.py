"""Web server command."""

import click

from .base import ensure_initialized, get_settings


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=8000, type=int, help="Port to bind to (default: 8000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, reload: bool):
    """Start the web API.

    Serves the form, client and sync endpoints on the specified host and
    port. The global --offline, --admin and --coach-id options apply to
    the server session.

    Examples:

        # Start on default port (8000)
        wellness-pass serve

        # Start on custom port
        wellness-pass serve --port 3000

        # Development mode with auto-reload
        wellness-pass serve --reload
    """
    ensure_initialized(ctx)

    import uvicorn

    from ..services.wellness import AppContext
    from ..web import create_app

    settings = get_settings(ctx)

    click.echo()
    click.echo(click.style("Starting wellness-pass API...", fg="green"))
    click.echo()
    click.echo(f"  Local:   http://{host}:{port}")
    if host == "0.0.0.0":
        import socket
        hostname = socket.gethostname()
        try:
            local_ip = socket.gethostbyname(hostname)
            click.echo(f"  Network: http://{local_ip}:{port}")
        except socket.gaierror:
            pass
    click.echo()
    click.echo("Press Ctrl+C to stop the server.")
    click.echo()

    if reload:
        # The reloader imports the factory itself, so it runs with defaults
        uvicorn.run(
            "wellness_pass.web:create_app",
            host=host,
            port=port,
            reload=True,
            factory=True,
        )
        return

    context = AppContext.create(
        data_dir=settings.data_dir,
        online=settings.online,
        session=settings.session,
    )
    uvicorn.run(create_app(context), host=host, port=port)
