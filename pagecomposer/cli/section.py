"""
Section store commands for PageComposer CLI
"""

import sys

import click

from ..services.models import Section, SectionType
from .common import get_dependencies, read_text


@click.group('section')
def section_group():
    """Manage stored page sections"""
    pass


@section_group.command('put')
@click.argument('document_id')
@click.argument('section_id')
@click.option('--type', 'section_type', type=click.Choice([t.value for t in SectionType]),
              default=SectionType.CUSTOM.value, show_default=True, help='Section type')
@click.option('--order', 'section_order', type=int, default=0, show_default=True,
              help='Order within the section type')
@click.option('--file', '-f', 'html_file', required=True,
              help="HTML file for the section ('-' reads stdin)")
@click.pass_context
def put_section(
    ctx,
    document_id: str,
    section_id: str,
    section_type: str,
    section_order: int,
    html_file: str,
):
    """
    Store (or replace) one section

    Examples:
        pagecomposer section put item-123 hero --type hero -f hero.html
        cat faq.html | pagecomposer section put item-123 faq --type faq -f -
    """
    deps = get_dependencies(ctx)
    try:
        html = read_text(html_file) or ""
        section = Section(
            document_id=document_id,
            section_id=section_id,
            section_type=section_type,
            section_order=section_order,
            html=html,
        )
        deps.section_store.put(section)
    except (OSError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✅ Stored section {section_id} ({section_type}, {len(html)} chars)")


@section_group.command('list')
@click.argument('document_id')
@click.pass_context
def list_sections(ctx, document_id: str):
    """
    List sections stored for a document

    Examples:
        pagecomposer section list item-123
    """
    deps = get_dependencies(ctx)
    sections = deps.section_store.get_all(document_id)

    if not sections:
        click.echo(f"No sections found for {document_id}.")
        return

    click.echo(f"\n{'='*60}")
    click.echo(f"📋 Sections for {document_id} ({len(sections)})")
    click.echo(f"{'='*60}\n")

    for section in sections:
        click.echo(
            f"  {section.section_id:<24} {section.section_type.value:<18} "
            f"order={section.section_order:<4} {len(section.html)} chars"
        )
    click.echo()


@section_group.command('clear')
@click.argument('document_id')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@click.pass_context
def clear_sections(ctx, document_id: str, yes: bool):
    """
    Delete every section of a document

    Examples:
        pagecomposer section clear item-123 --yes
    """
    if not yes:
        click.confirm(f"Delete all sections for {document_id}?", abort=True)

    deps = get_dependencies(ctx)
    removed = deps.section_store.clear(document_id)
    click.echo(f"🗑️  Removed {removed} sections")
