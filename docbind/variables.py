"""User-defined substitution variables, read from ``_docbind/variables.md``."""

from __future__ import annotations

import logging
from pathlib import Path

from bs4 import BeautifulSoup, Tag

from docbind.config.models import ProjectConfig, VariableMap
from docbind.errors import VariableFileUnreadable

logger = logging.getLogger(__name__)

USER_VARIABLES_PATH = Path("_docbind") / "variables.md"

# Left in place for the final template pass; resolving it during fragment
# inclusion would collapse it to an empty string.
BASE_URL_PLACEHOLDER = "{{baseUrl}}"


class VariableStore:
    """Loads and prepares the variable map for one project root."""

    def __init__(self, root_path: Path) -> None:
        self.root_path = Path(root_path)
        self.path = self.root_path / USER_VARIABLES_PATH

    def load(self) -> str:
        """Read the variables file, or return "" with a warning if it can't be read."""
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("%s", VariableFileUnreadable(self.path, exc))
            return ""

    @staticmethod
    def parse(content: str) -> VariableMap:
        """Map each top-level element's ``id`` to its inner markup.

        Elements without an id are skipped; a repeated id keeps the last value.
        """
        soup = BeautifulSoup(content, "html.parser")
        variables: VariableMap = {}
        for element in soup.children:
            if not isinstance(element, Tag):
                continue
            var_id = element.get("id")
            if not var_id:
                continue
            variables[str(var_id)] = element.decode_contents()
        return variables

    @staticmethod
    def inject_base_url_placeholder(variables: VariableMap) -> VariableMap:
        variables["baseUrl"] = BASE_URL_PLACEHOLDER
        return variables

    def prepare(self) -> VariableMap:
        variables = self.parse(self.load())
        self.inject_base_url_placeholder(variables)
        logger.debug("loaded %d user variables from %s", len(variables), self.path)
        return variables

    def apply_to(self, config: ProjectConfig) -> ProjectConfig:
        """Store the prepared map under this root's key in ``config``."""
        config.user_defined_variables_map[str(self.root_path)] = self.prepare()
        return config
