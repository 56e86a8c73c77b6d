"""
Composition stage commands for PageComposer CLI
"""

import asyncio
import json
import sys
from typing import Optional, Tuple

import click

from ..core.config import validate_scope_class
from ..services.page_template import PageMeta
from ..services.style_isolation import StyleIsolationTransformer, scope_css
from .common import get_dependencies, read_text, report_failure, style_profile


def _page_meta_options(func):
    options = [
        click.option('--title', required=True, help='Page title'),
        click.option('--description', help='Meta description'),
        click.option('--keywords', help='Meta keywords'),
        click.option('--canonical-url', help='Canonical URL'),
        click.option('--og-image', help='Open Graph image URL'),
        click.option('--brand-color', help='Brand color hex (overrides the project profile)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_meta(project, title, description, keywords, canonical_url, og_image, brand_color) -> PageMeta:
    profile = style_profile(project)
    return PageMeta(
        title=title,
        description=description,
        keywords=keywords,
        canonical_url=canonical_url,
        og_image=og_image,
        brand_color=brand_color or profile.brand_color,
    )


def _transformer_for(deps, project: Optional[str], scope_class: Optional[str]) -> StyleIsolationTransformer:
    if not project:
        return deps.transformer
    profile = style_profile(project)
    return StyleIsolationTransformer(
        deps.document_store,
        scope_class=scope_class or profile.scope_class,
        global_utility_classes=profile.global_utility_classes,
    )


@click.command('assemble')
@click.argument('document_id')
@_page_meta_options
@click.option('--project', '-p', help='Project slug for the style profile (projects/<slug>/style.yml)')
@click.pass_context
def assemble_command(ctx, document_id, title, description, keywords, canonical_url,
                     og_image, brand_color, project):
    """
    Assemble stored sections into the page document

    Examples:
        pagecomposer assemble item-123 --title "Best CRM Alternatives"
    """
    deps = get_dependencies(ctx)
    try:
        meta = _build_meta(project, title, description, keywords, canonical_url, og_image, brand_color)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    result = deps.assembler.assemble(document_id, meta)
    if not result.success:
        if result.missing_or_invalid:
            click.echo(f"   Sections to regenerate: {', '.join(result.missing_or_invalid)}", err=True)
        report_failure(result)

    click.echo(f"✅ Assembled {result.sections_assembled} sections ({result.html_size} bytes)")
    click.echo(f"   Order: {' → '.join(result.section_order)}")


@click.command('inject')
@click.argument('document_id')
@click.option('--header-file', help='Header HTML file (fetched from site contexts if omitted)')
@click.option('--footer-file', help='Footer HTML file (fetched from site contexts if omitted)')
@click.option('--head-tags-file', help='Extra head tags file')
@click.pass_context
def inject_command(ctx, document_id, header_file, footer_file, head_tags_file):
    """
    Merge site header, footer and head tags into the document

    Examples:
        pagecomposer inject item-123
        pagecomposer inject item-123 --header-file header.html --footer-file footer.html
    """
    deps = get_dependencies(ctx)
    try:
        header = read_text(header_file)
        footer = read_text(footer_file)
        head_tags = read_text(head_tags_file)
    except OSError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    result = deps.injector.inject(document_id, header=header, footer=footer, head_tags=head_tags)
    if not result.success:
        report_failure(result)

    click.echo(f"✅ Merged site contexts ({result.html_size} bytes)")
    click.echo(f"   Header: {result.header_source}, Footer: {result.footer_source}")
    for warning in result.warnings:
        click.echo(f"   ⚠️  {warning}")


@click.command('isolate')
@click.argument('document_id')
@click.option('--scope-class', help='Scope class (default: PAGE_SCOPE_CLASS)')
@click.option('--project', '-p', help='Project slug for the style profile')
@click.option('--force', is_flag=True, help='Re-run on an already scoped document')
@click.pass_context
def isolate_command(ctx, document_id, scope_class, project, force):
    """
    Scope page styles so they cannot collide with the site layout

    Examples:
        pagecomposer isolate item-123
        pagecomposer isolate item-123 --scope-class page-scope --force
    """
    deps = get_dependencies(ctx)
    try:
        transformer = _transformer_for(deps, project, scope_class)
        result = transformer.isolate(document_id, scope_class=scope_class, force=force)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    if not result.success:
        report_failure(result)

    if result.already_scoped:
        click.echo(f"ℹ️  Already scoped under .{result.scope_class}, nothing to do (use --force to re-run)")
        return

    click.echo(
        f"✅ Scoped {result.scoped_blocks} style blocks under .{result.scope_class} "
        f"(passed through {result.passthrough_blocks}, body: {result.wrap_strategy})"
    )
    for conflict in result.conflicts:
        click.echo(f"   [{conflict.severity}] {conflict.type}: {conflict.description}")


@click.command('finalize')
@click.argument('document_id')
@click.option('--attempts', type=int, help='Read attempts (default: FINALIZE_READ_ATTEMPTS)')
@click.pass_context
def finalize_command(ctx, document_id, attempts):
    """
    Sanitize and save the final page

    Examples:
        pagecomposer finalize item-123
    """
    deps = get_dependencies(ctx)
    finalizer = deps.finalizer
    if attempts:
        finalizer.attempts = attempts

    result = finalizer.finalize(document_id)
    if not result.success:
        report_failure(result)

    click.echo(f"✅ Final page saved ({result.html_size} bytes, {result.attempts} read attempt(s))")
    click.echo(f"   Header: {'YES' if result.has_header else 'NO'}, Footer: {'YES' if result.has_footer else 'NO'}")


@click.command('compose')
@click.argument('document_id')
@_page_meta_options
@click.option('--header-file', help='Header HTML file (fetched from site contexts if omitted)')
@click.option('--footer-file', help='Footer HTML file (fetched from site contexts if omitted)')
@click.option('--head-tags-file', help='Extra head tags file')
@click.option('--scope-class', help='Scope class (default: PAGE_SCOPE_CLASS)')
@click.option('--project', '-p', help='Project slug for the style profile')
@click.option('--json', 'as_json', is_flag=True, help='Print the pipeline result as JSON')
@click.pass_context
def compose_command(ctx, document_id, title, description, keywords, canonical_url, og_image,
                    brand_color, header_file, footer_file, head_tags_file, scope_class,
                    project, as_json):
    """
    Run assemble → inject → isolate → finalize for a document

    Examples:
        pagecomposer compose item-123 --title "Best CRM Alternatives" -p acme
    """
    from ..pipelines.page_composition import run_page_composition

    deps = get_dependencies(ctx)
    try:
        meta = _build_meta(project, title, description, keywords, canonical_url, og_image, brand_color)
        transformer = _transformer_for(deps, project, scope_class)
        header = read_text(header_file)
        footer = read_text(footer_file)
        head_tags = read_text(head_tags_file)
    except (OSError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    if transformer is not deps.transformer:
        deps = deps.model_copy(update={"transformer": transformer})

    result = asyncio.run(run_page_composition(
        document_id,
        meta,
        header=header,
        footer=footer,
        head_tags=head_tags,
        scope_class=scope_class,
        deps=deps,
    ))

    if as_json:
        click.echo(json.dumps(result, indent=2, default=str))
    elif result["status"] == "success":
        click.echo(f"✅ Page composed ({result['html_size']} bytes)")
        click.echo(f"   Header: {'YES' if result['has_header'] else 'NO'}, Footer: {'YES' if result['has_footer'] else 'NO'}")
        for warning in result["warnings"]:
            click.echo(f"   ⚠️  {warning}")
    else:
        click.echo(f"❌ Failed at {result['step']}: {result['error']}", err=True)

    if result["status"] != "success":
        sys.exit(1)


@click.command('scope-css')
@click.argument('css_file')
@click.option('--scope-class', help='Scope class (default: PAGE_SCOPE_CLASS or the project profile)')
@click.option('--allow', 'allow', multiple=True, help='Global utility class to leave unscoped (repeatable)')
@click.option('--project', '-p', help='Project slug for the style profile')
def scope_css_command(css_file: str, scope_class: Optional[str], allow: Tuple[str, ...], project: Optional[str]):
    """
    Print a stylesheet scoped under the scope class

    Examples:
        pagecomposer scope-css page.css --scope-class scope1 --allow .btn-primary
        cat page.css | pagecomposer scope-css -
    """
    try:
        profile = style_profile(project)
        css = read_text(css_file) or ""
        scope = validate_scope_class(scope_class or profile.scope_class)
    except (OSError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    allowlist = list(allow) if allow else profile.global_utility_classes
    click.echo(scope_css(css, scope, allowlist), nl=False)
