"""
Shared infrastructure services.

    from toolkit.services import EmailService
"""

from toolkit.services.email import EmailService

__all__ = ["EmailService"]
