"""
Configuration management for PageComposer
"""

import os
import re
import yaml
from pathlib import Path
from typing import List
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(',') if part.strip()]


# Shared contract classes consumed by injected layout and interactive scripts
DEFAULT_GLOBAL_UTILITY_CLASSES = [
    '.btn-primary',
    '.btn-secondary',
    '.badge',
    '.badge-winner',
    '.faq-item',
    '.faq-content',
    '.faq-icon',
    '.faq-question',
    '.faq-answer',
    '.bg-brand-icon',
    '.bg-brand-bg',
    '.text-brand',
    '.text-brand-icon',
    '.ring-brand-icon',
    '.border-brand',
    '.scroll-top-btn',
]

_SCOPE_CLASS_RE = re.compile(r'^-?[_a-zA-Z][_a-zA-Z0-9-]*$')


class Config:
    """Application configuration"""

    # Supabase
    SUPABASE_URL: str = os.getenv('SUPABASE_URL', '')
    SUPABASE_SERVICE_KEY: str = os.getenv('SUPABASE_SERVICE_KEY', '')

    # Tables
    DOCUMENTS_TABLE: str = os.getenv('DOCUMENTS_TABLE', 'content_items')
    SECTIONS_TABLE: str = os.getenv('SECTIONS_TABLE', 'content_item_sections')
    LAYOUT_FRAGMENTS_TABLE: str = os.getenv('LAYOUT_FRAGMENTS_TABLE', 'site_contexts')

    # Style isolation
    PAGE_SCOPE_CLASS: str = os.getenv('PAGE_SCOPE_CLASS', 'page-content-scope')
    GLOBAL_UTILITY_CLASSES: List[str] = (
        _split_csv(os.getenv('STYLE_GLOBAL_UTILITY_CLASSES', ''))
        or list(DEFAULT_GLOBAL_UTILITY_CLASSES)
    )

    # Context injection
    CSS_FRAMEWORK_SCRIPT_URL: str = os.getenv(
        'CSS_FRAMEWORK_SCRIPT_URL', 'https://cdn.tailwindcss.com'
    )
    DEFAULT_BRAND_COLOR: str = os.getenv('DEFAULT_BRAND_COLOR', '#0ea5e9')

    # Finalizer read retry (tolerates lagging writes from the injector)
    FINALIZE_READ_ATTEMPTS: int = int(os.getenv('FINALIZE_READ_ATTEMPTS', '3'))
    FINALIZE_READ_BACKOFF_SECONDS: float = float(os.getenv('FINALIZE_READ_BACKOFF_SECONDS', '1.0'))

    # Layout fragment cache
    LAYOUT_FRAGMENT_CACHE_TTL: float = float(os.getenv('LAYOUT_FRAGMENT_CACHE_TTL', '300'))
    LAYOUT_FRAGMENT_CACHE_SIZE: int = int(os.getenv('LAYOUT_FRAGMENT_CACHE_SIZE', '256'))

    # Section validation (0 disables the length check)
    MIN_SECTION_HTML_LENGTH: int = int(os.getenv('MIN_SECTION_HTML_LENGTH', '0'))

    # Debug previews returned with failed stage results
    PREVIEW_CHARS: int = int(os.getenv('PREVIEW_CHARS', '5000'))

    @classmethod
    def validate(cls) -> bool:
        """Validate required configuration"""
        required = {
            'SUPABASE_URL': cls.SUPABASE_URL,
            'SUPABASE_SERVICE_KEY': cls.SUPABASE_SERVICE_KEY,
        }

        missing = [k for k, v in required.items() if not v]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True


def validate_scope_class(scope_class: str) -> str:
    """
    Check that a scope class is a usable CSS class identifier.

    Accepts the bare name or a leading dot ('.page-scope' -> 'page-scope').

    Raises:
        ValueError: If the name is not a valid CSS identifier
    """
    name = scope_class.strip().lstrip('.')
    if not _SCOPE_CLASS_RE.match(name):
        raise ValueError(f"Invalid scope class: {scope_class!r}")
    return name


@dataclass
class StyleProfile:
    """Per-project style isolation settings"""
    scope_class: str = field(default_factory=lambda: Config.PAGE_SCOPE_CLASS)
    global_utility_classes: List[str] = field(
        default_factory=lambda: list(Config.GLOBAL_UTILITY_CLASSES)
    )
    brand_color: str = field(default_factory=lambda: Config.DEFAULT_BRAND_COLOR)


def load_style_profile(project_slug: str, base_dir: str = "projects") -> StyleProfile:
    """
    Load the style profile for a project.

    Loads from: {base_dir}/{project_slug}/style.yml
    Missing keys fall back to Config defaults. Classes listed under
    'extra_global_utility_classes' are appended to the default allowlist,
    'global_utility_classes' replaces it.

    Args:
        project_slug: Project identifier (e.g., 'acme-alternatives')
        base_dir: Directory holding per-project folders

    Returns:
        StyleProfile instance

    Raises:
        FileNotFoundError: If style.yml doesn't exist
        ValueError: If configuration is invalid
    """
    config_path = Path(base_dir) / project_slug / "style.yml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Style profile not found at {config_path}\n"
            f"Create a style.yml file in the project directory."
        )

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"{config_path} must contain a mapping")

    profile = StyleProfile()

    if raw_config.get('scope_class'):
        profile.scope_class = validate_scope_class(str(raw_config['scope_class']))

    if 'global_utility_classes' in raw_config:
        profile.global_utility_classes = [
            str(c) for c in (raw_config['global_utility_classes'] or [])
        ]
    for extra in raw_config.get('extra_global_utility_classes', []) or []:
        if extra not in profile.global_utility_classes:
            profile.global_utility_classes.append(str(extra))

    if raw_config.get('brand_color'):
        profile.brand_color = str(raw_config['brand_color'])

    return profile
