"""
Toolkit - shared application services.

Key components:
    - services/email.py: EmailService class (template-based e-mail)

Usage:
    from toolkit.services.email import EmailService

Note:
    - This app has no models.
    - For model-layer patterns and service base classes, see core/.
"""
