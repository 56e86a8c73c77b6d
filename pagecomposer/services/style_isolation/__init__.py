"""
Style isolation for composed pages.

- css_tokenizer: stylesheet -> rule objects -> stylesheet, byte-faithful
- css_scoper: prefix selectors with the scope class
- body_wrapper: put page content under the scope class, drop theme widgets
- transformer: the document-level stage
"""

from .css_tokenizer import (
    CommentRule,
    KeyframesRule,
    MediaRule,
    QualifiedRule,
    StyleRule,
    Stylesheet,
    VerbatimRule,
    parse_stylesheet,
    serialize_stylesheet,
)
from .css_scoper import is_global_utility, scope_css, scope_selector_branch
from .body_wrapper import remove_theme_switcher, wrap_body_with_scope
from .transformer import (
    SCOPE_MARKER_ATTR,
    StyleIsolationTransformer,
    TransformOutcome,
    analyze_style_conflicts,
)

__all__ = [
    "CommentRule",
    "KeyframesRule",
    "MediaRule",
    "QualifiedRule",
    "StyleRule",
    "Stylesheet",
    "VerbatimRule",
    "parse_stylesheet",
    "serialize_stylesheet",
    "is_global_utility",
    "scope_css",
    "scope_selector_branch",
    "remove_theme_switcher",
    "wrap_body_with_scope",
    "SCOPE_MARKER_ATTR",
    "StyleIsolationTransformer",
    "TransformOutcome",
    "analyze_style_conflicts",
]
