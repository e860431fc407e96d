"""
Order email template engine built on Jinja2.

Each order status with an email has three files under ``email_templates/``:
``order_<status>_subject.txt``, ``order_<status>.html`` and an optional
``order_<status>.txt`` plain-text part. Rendering is pure: no I/O beyond
loading template files.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from storefront.core.logging import get_logger
from storefront.services.formatting import format_date, format_money
from storefront.services.orders.enums import OrderStatus

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "email_templates"

STATUS_TEMPLATES: Dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "order_confirmed",
    OrderStatus.PROCESSING: "order_processing",
    OrderStatus.SHIPPED: "order_shipped",
    OrderStatus.DELIVERED: "order_delivered",
}


class TemplateEngineError(Exception):
    """Base exception for template engine errors."""

    def __init__(self, message: str, template_name: Optional[str] = None):
        super().__init__(message)
        self.template_name = template_name


class TemplateNotFoundError(TemplateEngineError):
    """Raised when a template cannot be found."""

    pass


class TemplateRenderError(TemplateEngineError):
    """Raised when template rendering fails."""

    pass


class TemplateEngine:
    """
    Renders order status emails.

    Args:
        template_dir: Directory containing template files; defaults to the
            packaged ``email_templates`` directory
        currency_symbol: Symbol used by the ``currency`` filter
    """

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        currency_symbol: str = "₹",
    ):
        self.template_dir = Path(template_dir or TEMPLATE_DIR)
        self.currency_symbol = currency_symbol

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["currency"] = self._format_currency
        self.env.filters["date"] = format_date

    @staticmethod
    def template_for(status: OrderStatus) -> Optional[str]:
        """Template name for a status, or None when the status has no email."""
        return STATUS_TEMPLATES.get(status)

    def render_email(self, template_name: str, context: Dict[str, Any]) -> Dict[str, str]:
        """
        Render an email template.

        Args:
            template_name: Template base name, e.g. ``order_shipped``
            context: Variables available to the templates

        Returns:
            Dictionary with ``subject`` and ``html_body``, plus ``text_body``
            when a plain-text template exists

        Raises:
            TemplateNotFoundError: If the subject or HTML template is missing
            TemplateRenderError: If rendering fails
        """
        try:
            subject = self._load_template(f"{template_name}_subject.txt").render(**context)
            html_body = self._load_template(f"{template_name}.html").render(**context)

            result = {
                # Subjects must be a single line
                "subject": " ".join(subject.split()),
                "html_body": html_body,
            }

            try:
                text_template = self._load_template(f"{template_name}.txt")
            except TemplateNotFound:
                text_template = None
            if text_template is not None:
                result["text_body"] = text_template.render(**context)

            logger.debug(
                "Email template rendered",
                template_name=template_name,
                has_text_body="text_body" in result,
            )
            return result

        except TemplateNotFound as e:
            logger.error("Email template not found", template_name=template_name, error=str(e))
            raise TemplateNotFoundError(
                f"Email template not found: {template_name}",
                template_name=template_name,
            ) from e
        except TemplateError as e:
            logger.error(
                "Email template rendering failed",
                template_name=template_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TemplateRenderError(
                f"Failed to render email template: {e}",
                template_name=template_name,
            ) from e

    def _load_template(self, template_path: str) -> Template:
        return self.env.get_template(template_path)

    def _format_currency(self, value) -> str:
        return format_money(value, self.currency_symbol)


def get_template_engine(currency_symbol: str = "₹") -> TemplateEngine:
    """Factory function to create a template engine instance."""
    return TemplateEngine(currency_symbol=currency_symbol)
