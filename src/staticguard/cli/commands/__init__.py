"""CLI command implementations."""

from .classify import classify
from .run import run

__all__ = ["classify", "run"]
