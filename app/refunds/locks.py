"""
Compare-and-swap locking for refund request transitions.

A decision is validated against a snapshot of the request read outside
any lock. Before committing, lock_for_transition() re-reads the row under
SELECT ... FOR UPDATE, filtered on the snapshot's status and version. If
another writer committed in between, no row matches and the caller gets
ConcurrentModificationError instead of overwriting the other decision.

Usage:
    with transaction.atomic():
        locked = lock_for_transition(
            snapshot.pk,
            expected_status=snapshot.status,
            expected_version=snapshot.version,
        )
        locked.seller_approve(comment)
        locked.save()  # Version auto-increments
"""

from __future__ import annotations

import uuid

from django.db import transaction

from refunds.exceptions import ConcurrentModificationError, RefundRequestNotFoundError
from refunds.models import RefundRequest


def lock_for_transition(
    pk: uuid.UUID,
    expected_status: str,
    expected_version: int,
) -> RefundRequest:
    """
    Lock a refund request if it still has the expected status and version.

    Must be called within a transaction; the row lock is held until the
    transaction commits or rolls back.

    Raises:
        RefundRequestNotFoundError: If the request doesn't exist
        ConcurrentModificationError: If status or version changed
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("lock_for_transition() must run inside transaction.atomic()")

    instance = (
        RefundRequest.objects.select_for_update()
        .filter(pk=pk, status=expected_status, version=expected_version)
        .first()
    )
    if instance is not None:
        return instance

    current = RefundRequest.objects.filter(pk=pk).values("status", "version").first()
    if current is None:
        raise RefundRequestNotFoundError(
            f"Refund request {pk} not found",
            details={"refund_request_id": str(pk)},
        )

    raise ConcurrentModificationError(
        f"Refund request {pk} was modified concurrently "
        f"(expected {expected_status} v{expected_version}, "
        f"found {current['status']} v{current['version']})",
        details={
            "refund_request_id": str(pk),
            "expected_status": str(expected_status),
            "expected_version": expected_version,
            "current_status": current["status"],
            "current_version": current["version"],
        },
    )
