"""Page shell for assembled sections.

Renders the <head> (SEO meta, CSS framework loader, page stylesheet) and
wraps the assembled section body in <main>, followed by the scroll-to-top
control. The page stylesheet is page-content CSS: the style isolation stage
scopes it later, except for the shared utility classes.
"""

import colorsys
import logging
import re
from dataclasses import dataclass
from html import escape
from typing import List, Optional, Tuple

from ..core.config import Config

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')


@dataclass
class PageMeta:
    """SEO metadata for the page head."""
    title: str
    description: Optional[str] = None
    keywords: Optional[str] = None
    canonical_url: Optional[str] = None
    og_image: Optional[str] = None
    brand_color: str = ""


def normalize_hex_color(color: Optional[str], fallback: Optional[str] = None) -> str:
    """Return a 6-digit lowercase hex color, or the fallback for bad input."""
    fallback = fallback or Config.DEFAULT_BRAND_COLOR
    if not color or not _HEX_COLOR_RE.match(color.strip()):
        return fallback.lower()
    color = color.strip().lower()
    if len(color) == 4:
        color = f"#{color[1]*2}{color[2]*2}{color[3]*2}"
    return color


def hex_to_hsl(hex_color: str) -> Tuple[int, int, int]:
    """Convert '#rrggbb' to (hue degrees, saturation %, lightness %)."""
    hex_color = normalize_hex_color(hex_color)
    r, g, b = (int(hex_color[i:i + 2], 16) / 255 for i in (1, 3, 5))
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return round(h * 360), round(s * 100), round(l * 100)


def shift_color(hex_color: str, percent: int) -> str:
    """Lighten (positive percent) or darken (negative) each channel."""
    hex_color = normalize_hex_color(hex_color)
    amount = round(2.55 * percent)
    channels = []
    for i in (1, 3, 5):
        value = int(hex_color[i:i + 2], 16) + amount
        channels.append(max(0, min(255, value)))
    return "#" + "".join(f"{c:02x}" for c in channels)


def brand_styles(brand_color: str) -> str:
    """Brand palette custom properties plus the shared utility classes."""
    brand_color = normalize_hex_color(brand_color)
    hue, sat, _ = hex_to_hsl(brand_color)

    return f"""
    :root {{
      --brand-color: {brand_color};
      --brand-color-dark: {shift_color(brand_color, -15)};
      --brand-color-light: {shift_color(brand_color, 90)};
      --brand-50: hsl({hue}, {sat}%, 97%);
      --brand-100: hsl({hue}, {sat}%, 92%);
      --brand-500: hsl({hue}, {sat}%, 50%);
      --brand-600: hsl({hue}, {sat}%, 45%);
      --brand-700: hsl({hue}, {sat}%, 38%);
    }}

    /* Brand utilities */
    .bg-brand-icon {{ background-color: var(--brand-color); }}
    .bg-brand-bg {{ background-color: var(--brand-color-light); }}
    .text-brand {{ color: var(--brand-color); }}
    .text-brand-icon {{ color: var(--brand-color); }}
    .ring-brand-icon {{ --tw-ring-color: var(--brand-color); }}
    .border-brand {{ border-color: var(--brand-color); }}

    .badge-winner {{
      background: linear-gradient(135deg, #fef3c7, #fde68a);
      color: #92400e;
      border: 1px solid #f59e0b;
      font-weight: 700;
    }}

    .btn-primary {{
      background: linear-gradient(135deg, var(--brand-color), var(--brand-color-dark));
      color: white;
      font-weight: 600;
      padding: 12px 24px;
      border-radius: 12px;
      display: inline-flex;
      align-items: center;
      gap: 0.5rem;
      transition: all 0.3s ease;
    }}
    .btn-primary:hover {{
      transform: translateY(-2px);
    }}

    .btn-secondary {{
      background-color: white;
      color: #374151;
      font-weight: 600;
      padding: 12px 24px;
      border-radius: 12px;
      border: 1.5px solid #e5e5e5;
      display: inline-flex;
      align-items: center;
      gap: 0.5rem;
    }}

    .faq-content {{ display: none; }}
    .faq-item.active .faq-content {{
      display: block;
      animation: fadeIn 0.3s ease;
    }}
    .faq-item.active .faq-icon {{ transform: rotate(180deg); }}

    @keyframes fadeIn {{
      from {{ opacity: 0; transform: translateY(-10px); }}
      to {{ opacity: 1; transform: translateY(0); }}
    }}

    .status-yes {{ color: var(--brand-color); }}
    .status-no {{ color: #a3a3a3; }}
    .status-partial {{ color: #737373; }}
"""


PAGE_STYLES = """
    body {
      font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
      -webkit-font-smoothing: antialiased;
      color: #171717;
    }

    .font-serif {
      font-family: 'Playfair Display', Georgia, serif;
    }

    section + section { margin-top: 0; }

    .card {
      background: white;
      border: 1px solid #e5e5e5;
      border-radius: 16px;
      transition: box-shadow 0.3s ease, transform 0.3s ease;
    }
    .card:hover {
      transform: translateY(-4px);
    }

    .table-row-alt:nth-child(even) {
      background-color: #fafafa;
    }

    /* Scroll to top */
    .scroll-top-btn {
      opacity: 0;
      pointer-events: none;
      transition: all 0.3s ease;
      background: white;
    }
    .scroll-top-btn.visible {
      opacity: 1;
      pointer-events: auto;
    }

    @keyframes fadeInUp {
      from { opacity: 0; transform: translateY(20px); }
      to { opacity: 1; transform: translateY(0); }
    }

    .animate-fade-in-up {
      animation: fadeInUp 0.6s ease-out forwards;
    }

    @media (max-width: 640px) {
      h1 { font-size: 2rem; }
      .card { border-radius: 12px; }
    }
"""


SCROLL_TO_TOP = """<!-- Scroll to Top Button -->
    <button id="scrollTop" class="scroll-top-btn fixed bottom-6 right-6 w-12 h-12 rounded-full flex items-center justify-center z-50" onclick="window.scrollTo({top:0,behavior:'smooth'})" aria-label="Scroll to top">
      <svg class="w-5 h-5 text-gray-600" fill="none" stroke="currentColor" viewBox="0 0 24 24">
        <path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" d="M5 10l7-7m0 0l7 7m-7-7v18"/>
      </svg>
    </button>

    <script>
      const scrollBtn = document.getElementById('scrollTop');
      window.addEventListener('scroll', () => {
        scrollBtn.classList.toggle('visible', window.scrollY > 500);
      });
    </script>"""


def _meta_tags(meta: PageMeta) -> List[str]:
    title = escape(meta.title)
    tags = [
        '<meta charset="UTF-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f'<title>{title}</title>',
    ]
    if meta.description:
        tags.append(f'<meta name="description" content="{escape(meta.description)}">')
    if meta.keywords:
        tags.append(f'<meta name="keywords" content="{escape(meta.keywords)}">')

    tags.append(f'<meta property="og:title" content="{title}">')
    if meta.description:
        tags.append(f'<meta property="og:description" content="{escape(meta.description)}">')
    tags.append('<meta property="og:type" content="article">')
    if meta.canonical_url:
        tags.append(f'<meta property="og:url" content="{escape(meta.canonical_url)}">')
    if meta.og_image:
        tags.append(f'<meta property="og:image" content="{escape(meta.og_image)}">')

    tags.append('<meta name="twitter:card" content="summary_large_image">')
    tags.append(f'<meta name="twitter:title" content="{title}">')
    if meta.description:
        tags.append(f'<meta name="twitter:description" content="{escape(meta.description)}">')
    if meta.canonical_url:
        tags.append(f'<link rel="canonical" href="{escape(meta.canonical_url)}">')
    return tags


def render_page(body_html: str, meta: PageMeta) -> str:
    """Render a complete document around the assembled section body."""
    brand_color = normalize_hex_color(meta.brand_color)
    meta_tags = "\n    ".join(_meta_tags(meta))

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    {meta_tags}
    <script src="{Config.CSS_FRAMEWORK_SCRIPT_URL}"></script>
    <style>
{brand_styles(brand_color)}
{PAGE_STYLES}
    </style>
</head>
<body class="antialiased text-gray-900 bg-white">
    <main>
{body_html}
    </main>

    {SCROLL_TO_TOP}
</body>
</html>"""
