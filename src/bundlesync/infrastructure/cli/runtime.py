"""Shared CLI plumbing: settings, logging and the application handle."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import click

from bundlesync.domain.exceptions import ConfigurationError, DomainException
from bundlesync.infrastructure.bootstrap import Application, build_application
from bundlesync.infrastructure.config import Settings
from bundlesync.infrastructure.logging import configure_logging


@contextmanager
def open_application() -> Iterator[Application]:
    """Build the application for one command and close it afterwards.

    Domain errors become ClickExceptions so the user sees a message, not
    a traceback.
    """
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))

    configure_logging(settings.log_format)
    app = build_application(settings)
    try:
        yield app
    except DomainException as exc:
        raise click.ClickException(str(exc))
    finally:
        app.close()
