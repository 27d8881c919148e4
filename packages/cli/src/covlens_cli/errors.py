"""Turning library errors into readable CLI failures."""

from __future__ import annotations

import functools
import logging

import click
from github import GithubException

from covlens_core.coverage.models import CoverageParseError
from covlens_store.errors import NotesError

logger = logging.getLogger(__name__)

# Errors a user can do something about. Anything else is a bug and keeps its
# traceback.
HANDLED_ERRORS = (NotesError, CoverageParseError, FileNotFoundError, ValueError, GithubException)


def handle_errors(func):
    """Report expected failures as a one-line error with exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except HANDLED_ERRORS as e:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(f"{type(e).__name__}: {e}") from e

    return wrapper
