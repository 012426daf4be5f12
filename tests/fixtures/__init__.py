"""Test fixtures package."""

from .blog import BLOG_SCHEMA, make_settings, run_script
from .canned_executor import CannedExecutor
from .counting_executor import CountingExecutor, FailingIntrospector
from .dbapi_double import FakeConnection

__all__ = [
    "BLOG_SCHEMA",
    "make_settings",
    "run_script",
    "CannedExecutor",
    "CountingExecutor",
    "FailingIntrospector",
    "FakeConnection",
]
