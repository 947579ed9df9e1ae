"""Jinja2 rendering of the job alert email."""

from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .models import NotificationTemplateError


class TemplateRenderer:
    """Renders subject, HTML body, and plain-text body for a job alert email.

    Templates live in ``alert_engine/notifications/email_templates``. Missing
    context variables raise instead of rendering blanks.
    """

    def __init__(
        self,
        template_dir: str = "email_templates",
        subject_template: str = "job_alert_subject.j2",
        html_template: str = "job_alert_body.html.j2",
        text_template: str = "job_alert_body.txt.j2",
    ):
        self.subject_template_name = subject_template
        self.html_template_name = html_template
        self.text_template_name = text_template
        self.env = Environment(
            loader=PackageLoader("alert_engine.notifications", template_dir),
            autoescape=True,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, context: Dict[str, Any]) -> Dict[str, str]:
        """Render all three templates.

        Returns:
            Dict with subject (single line), html_body, and text_body

        Raises:
            NotificationTemplateError: If a template is missing or fails to render
        """
        try:
            subject = self.env.get_template(self.subject_template_name).render(context)
            html_body = self.env.get_template(self.html_template_name).render(context)
            text_body = self.env.get_template(self.text_template_name).render(context)
        except TemplateError as e:
            raise NotificationTemplateError(f"Template rendering failed: {e}") from e

        return {
            "subject": " ".join(subject.split()),
            "html_body": html_body,
            "text_body": text_body,
        }
