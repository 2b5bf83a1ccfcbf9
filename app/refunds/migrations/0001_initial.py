import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="RefundRequest",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "order_id",
                    models.UUIDField(db_index=True, help_text="Order being disputed"),
                ),
                (
                    "buyer_email",
                    models.EmailField(
                        db_index=True,
                        help_text="Buyer e-mail copied from the order",
                        max_length=254,
                    ),
                ),
                (
                    "product_id",
                    models.UUIDField(help_text="Product copied from the order"),
                ),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Refund amount in smallest currency unit (full order amount)"
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "reason",
                    models.TextField(help_text="Buyer-supplied reason for the refund"),
                ),
                (
                    "seller_comment",
                    models.TextField(
                        blank=True,
                        help_text="Seller's comment on their decision",
                        null=True,
                    ),
                ),
                (
                    "admin_comment",
                    models.TextField(
                        blank=True,
                        help_text="Administrator's justification for the final decision",
                        null=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved_by_seller", "Approved by Seller"),
                            ("rejected_by_seller", "Rejected by Seller"),
                            ("approved_by_admin", "Approved by Admin"),
                            ("rejected_by_admin", "Rejected by Admin"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current status of the refund request (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "response_deadline",
                    models.DateTimeField(
                        db_index=True,
                        help_text="Seller decisions after this instant are rejected",
                    ),
                ),
                (
                    "refund_request_deadline",
                    models.DateTimeField(
                        help_text="Order completion + request window; last instant to file"
                    ),
                ),
                (
                    "seller_decided_at",
                    models.DateTimeField(
                        blank=True, help_text="When the seller decided", null=True
                    ),
                ),
                (
                    "admin_decided_at",
                    models.DateTimeField(
                        blank=True, help_text="When an administrator decided", null=True
                    ),
                ),
                (
                    "cancelled_at",
                    models.DateTimeField(
                        blank=True, help_text="When the request was withdrawn", null=True
                    ),
                ),
                (
                    "cancelled_by",
                    models.CharField(
                        blank=True,
                        choices=[("buyer", "Buyer"), ("system", "System")],
                        default="",
                        help_text="Who withdrew the request",
                        max_length=10,
                    ),
                ),
                (
                    "cancellation_reason",
                    models.TextField(
                        blank=True, default="", help_text="Why the request was withdrawn"
                    ),
                ),
                (
                    "escalation_notified_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When administrators were notified of the lapsed window",
                        null=True,
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Arbitrary JSON metadata for extensibility",
                    ),
                ),
                (
                    "decided_by_admin",
                    models.ForeignKey(
                        blank=True,
                        help_text="Administrator who made the final decision",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refund_requests_decided",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "previous_request",
                    models.ForeignKey(
                        blank=True,
                        help_text="Closed request for the same order this one follows",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="follow_up_requests",
                        to="refunds.refundrequest",
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        help_text="Seller of the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refund_requests_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Refund Request",
                "verbose_name_plural": "Refund Requests",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["seller", "status"], name="refund_seller_status_idx"
                    ),
                    models.Index(
                        fields=["status", "response_deadline"],
                        name="refund_status_deadline_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount_cents__gt", 0)),
                        name="refund_request_amount_positive",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("status__in", ["pending", "rejected_by_seller"])
                        ),
                        fields=("order_id",),
                        name="refund_request_one_active_per_order",
                    ),
                ],
            },
        ),
    ]
