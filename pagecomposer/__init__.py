"""
PageComposer - Section assembly, layout injection and style isolation for
generated HTML pages.

Sections produced independently are assembled into one page, merged with a
site's header/footer, and have their page styles scoped so they cannot leak
into (or be broken by) the injected layout.
"""

__version__ = "0.1.0"
__author__ = "PageComposer Team"
