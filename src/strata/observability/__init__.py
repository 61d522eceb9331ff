"""Observability module for strata."""

from .callbacks import (
    CallbackManager,
    OnErrorCallback,
    OnRequestCallback,
    OnResponseCallback,
    create_logging_callbacks,
)

__all__ = [
    "CallbackManager",
    "OnRequestCallback",
    "OnResponseCallback",
    "OnErrorCallback",
    "create_logging_callbacks",
]
