"""Post-processing for ``render``: HTML formatting and the final template pass."""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from jinja2 import Environment

# Re-escape &, < and > in text so entities survive the parse/prettify cycle.
_FORMATTER = HTMLFormatter(entity_substitution=EntitySubstitution.substitute_xml, indent=2)
_env = Environment(keep_trailing_newline=True)


def format_html(html: str) -> str:
    """Pretty-print an HTML document or fragment with two-space indentation."""
    return BeautifulSoup(html, "html.parser").prettify(formatter=_FORMATTER)


def expand_template(text: str, *, base_url: str, host_base_url: str) -> str:
    """Substitute ``{{baseUrl}}`` and ``{{hostBaseUrl}}`` left by the first pass.

    Unknown variables render as empty strings. Raises ``jinja2.TemplateError``
    when the text is not a valid template.
    """
    return _env.from_string(text).render(baseUrl=base_url, hostBaseUrl=host_base_url)
