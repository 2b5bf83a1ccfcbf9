"""
Shared transition machinery for refund services.

Every state change follows the same two-phase shape:

1. Read a snapshot and run the caller's validation against it. This is
   where NotFound, Forbidden, InvalidTransition, WindowExpired and
   ValidationError are raised.
2. Inside one transaction, re-acquire the row with
   lock_for_transition(), which only matches if status and version are
   unchanged since the snapshot. Apply the django-fsm transition, debit
   the seller for approving events and save.

If another writer won in between, the whole sequence is retried once
against a fresh snapshot. A lost race on a now-terminal request therefore
surfaces as InvalidTransitionError, marked ``concurrent_modification``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django_fsm import TransitionNotAllowed

from core.services import BaseService
from refunds.exceptions import (
    ConcurrentModificationError,
    InvalidTransitionError,
    RefundRequestNotFoundError,
)
from refunds.locks import lock_for_transition
from refunds.models import RefundRequest
from refunds.notifications import build_context, get_dispatcher, notification_for
from refunds.services.settlement import debit_seller_for_refund, get_balance_adapter
from refunds.state_machines import DEBITING_EVENTS, next_status

if TYPE_CHECKING:
    import uuid
    from collections.abc import Callable

    from payments.adapters import BalanceLedgerAdapter
    from refunds.notifications import NotificationDispatcher


class RefundTransitionService(BaseService):
    """
    Base class for services that move a RefundRequest between statuses.

    The balance adapter and notification dispatcher can be injected for
    testing; by default they come from settings.
    """

    _balance_adapter: BalanceLedgerAdapter | None = None
    _dispatcher: NotificationDispatcher | None = None

    @classmethod
    def get_balance_adapter(cls) -> BalanceLedgerAdapter:
        return cls._balance_adapter or get_balance_adapter()

    @classmethod
    def set_balance_adapter(cls, adapter: BalanceLedgerAdapter | None) -> None:
        """Set the balance adapter (for testing)."""
        RefundTransitionService._balance_adapter = adapter

    @classmethod
    def get_dispatcher(cls) -> NotificationDispatcher:
        return cls._dispatcher or get_dispatcher()

    @classmethod
    def set_dispatcher(cls, dispatcher: NotificationDispatcher | None) -> None:
        """Set the notification dispatcher (for testing)."""
        RefundTransitionService._dispatcher = dispatcher

    @classmethod
    def _load(cls, request_id: uuid.UUID | str) -> RefundRequest:
        """
        Read the current snapshot of a refund request.

        Raises:
            RefundRequestNotFoundError: If the id does not resolve
        """
        try:
            return RefundRequest.objects.select_related("seller").get(pk=request_id)
        except (RefundRequest.DoesNotExist, DjangoValidationError, ValueError):
            raise RefundRequestNotFoundError(
                "Refund request not found",
                details={"refund_request_id": str(request_id)},
            )

    @classmethod
    def _run_transition(
        cls,
        request_id: uuid.UUID | str,
        event: str,
        validate: Callable[[RefundRequest], None],
        apply: Callable[[RefundRequest], None],
    ) -> RefundRequest:
        """
        Validate and commit ``event`` with one retry on a lost race.

        Args:
            request_id: Refund request to transition
            event: RefundEvent being applied
            validate: Raises a domain error if the snapshot rejects the event
            apply: Calls the django-fsm transition on the locked instance

        Returns:
            The request as committed

        Raises:
            BaseApplicationError subclasses from validate, the lock or the
            settlement step
        """
        for attempt in (1, 2):
            snapshot = cls._load(request_id)
            try:
                validate(snapshot)
                next_status(snapshot.status, event)
            except InvalidTransitionError as e:
                if attempt > 1:
                    e.details["concurrent_modification"] = True
                raise

            try:
                return cls._commit(snapshot, event, apply)
            except ConcurrentModificationError:
                if attempt > 1:
                    raise
                cls.get_logger().warning(
                    "Refund request changed concurrently, re-reading",
                    extra={
                        "refund_request_id": str(snapshot.id),
                        "event": str(event),
                        "expected_version": snapshot.version,
                    },
                )

        raise AssertionError("unreachable")

    @classmethod
    def _commit(
        cls,
        snapshot: RefundRequest,
        event: str,
        apply: Callable[[RefundRequest], None],
    ) -> RefundRequest:
        with cls.atomic():
            locked = lock_for_transition(snapshot.pk, snapshot.status, snapshot.version)
            try:
                apply(locked)
            except TransitionNotAllowed:
                raise InvalidTransitionError(locked.status, event)

            if event in DEBITING_EVENTS:
                ack = debit_seller_for_refund(locked, cls.get_balance_adapter())
                locked.metadata = {
                    **(locked.metadata or {}),
                    "ledger_entry_id": str(ack.entry_id),
                    "ledger_already_applied": ack.already_applied,
                }

            locked.save()
            cls._notify(locked, event)

        return RefundRequest.objects.select_related("seller").get(pk=locked.pk)

    @classmethod
    def _notify(cls, refund_request: RefundRequest, event: str) -> None:
        """
        Hand the notification for ``event`` to the dispatcher.

        Failures are logged and never propagate into the transition.
        """
        mapped = notification_for(refund_request, event)
        if mapped is None:
            return
        notification_event, recipients = mapped
        try:
            cls.get_dispatcher().notify(
                notification_event,
                recipients,
                build_context(refund_request),
            )
        except Exception:
            cls.get_logger().exception(
                "Failed to dispatch refund notification",
                extra={
                    "refund_request_id": str(refund_request.id),
                    "event": str(notification_event),
                },
            )
