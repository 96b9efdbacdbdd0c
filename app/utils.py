# /app/utils.py
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

logger = logging.getLogger(__name__)

PAGE_SUFFIX = ".page.html"


def human_date(t: Optional[datetime]) -> str:
    """'02 Jan 2006 at 15:04' in UTC; empty string for a missing time."""
    if t is None:
        return ""
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc).strftime("%d %b %Y at %H:%M")


def _to_int(val: Optional[str]) -> Optional[int]:
    if val is None or val == "":
        return None
    try:
        return int(val)
    except (ValueError, TypeError):
        return None


def parse_snippet_id(raw: str) -> Optional[int]:
    """Positive decimal ids only; anything else is treated as unknown."""
    if not raw or not raw.isdigit():
        return None
    value = _to_int(raw)
    if value is None or value < 1:
        return None
    return value


class TemplateCache:
    """
    Compiles every *.page.html (with its layouts and partials) once at
    startup. Read-only afterwards.
    """
    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)
        self.env = Environment(
            loader=FileSystemLoader(str(self.directory)),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["human_date"] = human_date
        self._pages: Dict[str, Template] = {}

        for page in sorted(self.directory.glob(f"*{PAGE_SUFFIX}")):
            self._pages[page.name] = self.env.get_template(page.name)
        logger.info("utils.py: [TemplateCache] compiled %d pages from %s", len(self._pages), self.directory)

    def __contains__(self, name: str) -> bool:
        return name in self._pages

    def names(self):
        return sorted(self._pages)

    def render(self, name: str, data: dict) -> str:
        template = self._pages.get(name)
        if template is None:
            raise LookupError(f"The template {name} does not exist")
        return template.render(**data)
