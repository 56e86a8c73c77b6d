"""
Helpers shared by CLI commands
"""

import sys
from typing import Optional

import click

from ..core.config import StyleProfile, load_style_profile
from ..pipelines.dependencies import CompositionDependencies
from ..services.models import StageResult


def get_dependencies(ctx: click.Context) -> CompositionDependencies:
    """Dependencies passed as the context object, else Supabase-backed ones."""
    root = ctx.find_root()
    if not isinstance(root.obj, CompositionDependencies):
        root.obj = CompositionDependencies.create()
    return root.obj


def read_text(path: Optional[str]) -> Optional[str]:
    """Read a file argument; '-' reads stdin, None stays None."""
    if path is None:
        return None
    if path == '-':
        return sys.stdin.read()
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def style_profile(project: Optional[str]) -> StyleProfile:
    if not project:
        return StyleProfile()
    return load_style_profile(project)


def report_failure(result: StageResult) -> None:
    """Print a failed stage result and exit non-zero."""
    click.echo(f"❌ Error ({result.error_kind}): {result.error}", err=True)
    for warning in result.warnings:
        click.echo(f"   ⚠️  {warning}", err=True)
    sys.exit(1)
