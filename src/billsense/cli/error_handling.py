"""CLI error handling helpers."""

import logging

import click

from billsense.domain.errors import DomainError, ProviderError

logger = logging.getLogger(__name__)

HINTS = (
    (ProviderError, "Configure a provider with 'billsense email-settings' or set BILLSENSE_BREVO_API_KEY."),
)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Print the error to stderr, with a hint where one helps, and exit 1."""
    logger.debug("Command '%s' failed: %s", ctx.command_path, error)
    click.echo(f"Error: {error}", err=True)
    for error_type, hint in HINTS:
        if isinstance(error, error_type):
            click.echo(hint, err=True)
    ctx.exit(1)
