"""
Email service for template-based email sending.

Templates are rendered with Django's template engine: ``<name>.txt`` is the
plain-text body and ``<name>.html``, when present, is attached as the HTML
alternative.

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT
    - DEFAULT_FROM_EMAIL

Usage:
    from toolkit.services.email import EmailService

    EmailService.send(
        to=["seller@example.com"],
        subject="New refund request",
        template_name="refunds/email/refund_requested",
        context={"amount": "25.00", "currency": "EUR"},
    )
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


class EmailService:
    """
    Centralized email sending with template support.

    Delivery errors from the mail backend propagate so that callers running
    inside Celery tasks can retry.
    """

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        from_email: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        """
        Send email using a template.

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            template_name: Name of template (without extension)
                           Looks for: {template_name}.txt and {template_name}.html
            context: Template context variables
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
            reply_to: Reply-to address

        Returns:
            True if the backend accepted the message

        Raises:
            TemplateDoesNotExist: If the plain-text template is missing
        """
        if isinstance(to, str):
            to = [to]
        if not to:
            logger.warning("Email not sent: no recipients", extra={"template": template_name})
            return False

        text_content = render_to_string(f"{template_name}.txt", context)
        try:
            html_content = render_to_string(f"{template_name}.html", context)
        except TemplateDoesNotExist:
            html_content = None

        email = EmailMultiAlternatives(
            subject=subject,
            body=text_content,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=to,
            reply_to=[reply_to] if reply_to else None,
        )
        if html_content:
            email.attach_alternative(html_content, "text/html")

        sent = email.send()
        logger.info(
            "Email sent",
            extra={
                "template": template_name,
                "recipient_count": len(to),
                "sent": bool(sent),
            },
        )
        return bool(sent)
