"""
Celery configuration for the refund dispute service.

Celery runs the work that must not block or undo a refund decision:
- refund notification e-mails (refunds.tasks.send_refund_notification)
- the periodic escalation sweep (refunds.tasks.sweep_escalated_refunds),
  scheduled from the database by django-celery-beat

Redis is both the message broker and the result backend. Tasks are
auto-discovered from every installed app's tasks.py.

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
