"""
SVG and HTML output for render targets using Jinja2 templates.

Serializes a RenderTarget to:
- A standalone <svg> element (groups in order, shapes in document order)
- A complete HTML page embedding one or more SVG surfaces
"""

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, select_autoescape

from vizpipe.encode.projections import format_coordinate
from vizpipe.render.shapes import RenderTarget

logger = logging.getLogger(__name__)


# =============================================================================
# TEMPLATE ENVIRONMENT
# =============================================================================


def get_template_env() -> Environment:
    """Get Jinja2 environment with the SVG filters registered.

    Returns:
        Jinja2 Environment with autoescaping for SVG/HTML output
    """
    env = Environment(
        autoescape=select_autoescape(["html", "xml", "svg"], default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    # Add custom filters
    env.filters["svg_value"] = _format_value
    env.filters["css"] = _format_style

    return env


def _format_value(value: Any) -> str:
    """Format an attribute value; floats are rounded to three decimals."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        return format_coordinate(value)
    return str(value)


def _format_style(style: dict[str, Any]) -> str:
    """Format a style dict as a CSS declaration list."""
    return ";".join(f"{name.replace('_', '-')}:{_format_value(value)}" for name, value in style.items())


# =============================================================================
# RENDERING
# =============================================================================


def render_svg(target: RenderTarget) -> str:
    """Render a target to an <svg> element.

    Args:
        target: The drawing surface

    Returns:
        SVG markup as string
    """
    env = get_template_env()
    template = env.from_string(_get_svg_template())
    return template.render(target=target).strip()


def render_html(
    target: RenderTarget | list[RenderTarget],
    title: str = "",
    *,
    description: str | None = None,
) -> str:
    """Render one or more targets into a complete HTML document.

    Args:
        target: Surface, or surfaces drawn one after another
        title: Page title and heading
        description: Optional paragraph under the heading

    Returns:
        Complete HTML document as string
    """
    targets = target if isinstance(target, list) else [target]
    env = get_template_env()
    template = env.from_string(_get_page_template())
    return template.render(
        title=title or targets[0].name,
        description=description,
        svgs=[render_svg(t) for t in targets],
    )


def save_html(html: str, path: Path | str) -> Path:
    """Write an HTML document, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    logger.info(f"Wrote {len(html)} bytes to {path}")
    return path


# =============================================================================
# INLINE TEMPLATES
# =============================================================================


def _get_svg_template() -> str:
    """Get the SVG surface template."""
    return '''<svg xmlns="http://www.w3.org/2000/svg" class="{{ target.name }}" width="{{ target.width | svg_value }}" height="{{ target.height | svg_value }}" viewBox="0 0 {{ target.width | svg_value }} {{ target.height | svg_value }}">
{% for group in target.groups %}
  <g class="{{ group.name }}"{% for name, value in group.attrs.items() %} {{ name }}="{{ value | svg_value }}"{% endfor %}>
{% for shape in group %}
    <{{ shape.kind }} data-key="{{ shape.key }}"{% for name, value in shape.attrs.items() %}{% if value is not none %} {{ name }}="{{ value | svg_value }}"{% endif %}{% endfor %}{% if shape.style %} style="{{ shape.style | css }}"{% endif %}{% if shape.text is not none %}>{{ shape.text }}</{{ shape.kind }}>{% else %}/>{% endif %}

{% endfor %}
  </g>
{% endfor %}
</svg>
'''


def _get_page_template() -> str:
    """Get the HTML page template."""
    return '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }}</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 2rem; color: #2d3748; }
        svg { display: block; margin-bottom: 1.5rem; overflow: visible; }
        .tick-label, .axis-label, .legend text { font-size: 11px; fill: currentColor; }
        .tooltip { font-size: 12px; }
    </style>
</head>
<body>
    <h1>{{ title }}</h1>
{% if description %}
    <p>{{ description }}</p>
{% endif %}
{% for svg in svgs %}
{{ svg | safe }}
{% endfor %}
</body>
</html>
'''
