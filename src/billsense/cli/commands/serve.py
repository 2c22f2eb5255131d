"""HTTP server command."""

import click
import uvicorn

from billsense.server.app import create_app


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", type=int, default=8000, show_default=True, help="Port to listen on")
@click.pass_context
def serve(ctx, host: str, port: int):
    """Run the invoice e-mail and client invite endpoints."""
    config = ctx.obj["config"]
    app = create_app(db=ctx.obj["db"], config=config)
    click.echo(f"Serving on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower())


def register_commands(cli):
    """Register serve command with main CLI."""
    cli.add_command(serve)
