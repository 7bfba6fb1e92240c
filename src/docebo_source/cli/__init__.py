"""
CLI Module - Command-line interface for Docebo Source.
======================================================

Usage:
    docebo-source --help
    docebo-source check --base-url https://acme.docebosaas.com
    docebo-source run -c 7 -c 12 --output data/course_pages.jsonl
    docebo-source info

Components:
- main: Typer CLI application
"""

from docebo_source.cli.main import app, cli

__all__ = ["app", "cli"]
