"""CLI helpers for the acting-user session."""

import click

from billsense.domain.session import SessionContext


def get_session(ctx: click.Context) -> SessionContext:
    """Return the command's session, opening it on first use.

    Exits with an error when no acting user was given.
    """
    root = ctx.find_root()
    session = root.obj.get("session")
    if session is not None:
        return session

    user_id = root.obj.get("user_id")
    if user_id is None:
        click.echo(
            "Error: No acting user. Pass --user or set BILLSENSE_USER "
            "(run 'billsense setup' to create one).",
            err=True,
        )
        ctx.exit(1)

    db = root.obj["db"]
    if db.get_profile(user_id) is None:
        click.echo(f"Error: Profile {user_id} not found", err=True)
        ctx.exit(1)

    session = SessionContext(db, user_id, root.obj.get("config"))
    root.obj["session"] = session
    return session
