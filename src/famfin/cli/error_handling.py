"""Reporting of service failures on the command line."""

import logging

import click

from famfin.domain.errors import DomainError, StorageError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Print ``Error: <message>`` to stderr and stop the command with status 1.

    Storage failures also log their cause, which ``--verbose`` shows.
    """
    if isinstance(error, StorageError):
        logger.debug("Storage failure", exc_info=error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
