# backend/focuspair/services/template_service.py
"""
Template rendering for notification emails.

Templates live under focuspair/templates and are rendered with Jinja2.
"""

from datetime import datetime
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.constants import BRAND_NAME
from ..core.exceptions import ServiceException

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def _format_datetime(value: datetime | str, format_str: str = "%A %d %B, %H:%M") -> str:
    if isinstance(value, str):
        return value  # Already formatted
    return value.strftime(format_str)


class TemplateService:
    """Renders Jinja2 templates with shared globals and filters."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=True,  # Enable autoescaping for security
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["format_datetime"] = _format_datetime
        self.env.globals["brand_name"] = BRAND_NAME

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound as exc:
            logger.error("Email template not found: %s", template_name)
            raise ServiceException(f"Template not found: {template_name}") from exc
        return template.render(**context)
