"""
Main CLI entry point for PageComposer
"""

import logging

import click

from ..core.observability import setup_logfire
from .section import section_group
from .compose import (
    assemble_command,
    compose_command,
    finalize_command,
    inject_command,
    isolate_command,
    scope_css_command,
)


@click.group()
@click.version_option(version='0.1.0')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose: bool):
    """
    PageComposer - Assemble, decorate and style-isolate generated pages

    Stages run against the stored document in order:
    assemble -> inject -> isolate -> finalize (or all at once with compose).
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    setup_logfire()


# Register commands
cli.add_command(section_group)
cli.add_command(assemble_command)
cli.add_command(inject_command)
cli.add_command(isolate_command)
cli.add_command(finalize_command)
cli.add_command(compose_command)
cli.add_command(scope_css_command)


if __name__ == '__main__':
    cli()
