"""
Add celery-beat schedule for announcing escalated refund disputes.

The sweep_escalated_refunds task runs every 30 minutes and e-mails
administrators about requests that were rejected by the seller or whose
response window lapsed.
"""

from django.db import migrations

TASK_NAME = "Announce Escalated Refund Requests"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for the escalation sweep."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Every 30 minutes
    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=30,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "refunds.tasks.sweep_escalated_refunds",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Notifies administrators once about each refund request that "
                "needs a final decision."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("refunds", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
