"""
Read-only admin for the seller balance ledger.

Nothing can be added, edited or deleted here. Support staff use it to check
what a seller's balance is and which refund debits produced it.
"""

from django.contrib import admin

from payments.ledger.models import LedgerAccount, LedgerEntry
from payments.ledger.types import Money


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(LedgerAccount)
class LedgerAccountAdmin(ReadOnlyAdmin):
    list_display = ["type", "owner_id", "currency", "balance", "is_active", "allow_negative"]
    list_filter = ["type", "currency", "is_active"]
    search_fields = ["=owner_id"]
    ordering = ["type", "owner_id", "currency"]

    @admin.display(description="Balance")
    def balance(self, obj: LedgerAccount) -> str:
        return str(Money(cents=obj.get_balance(), currency=obj.currency))


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdmin):
    list_display = [
        "created_at",
        "entry_type",
        "amount",
        "debit_account",
        "credit_account",
        "reference_id",
    ]
    list_filter = ["entry_type", "currency"]
    list_select_related = ["debit_account", "credit_account"]
    # Refund debits are keyed by refund request id
    search_fields = ["=idempotency_key"]
    date_hierarchy = "created_at"

    @admin.display(description="Amount", ordering="amount_cents")
    def amount(self, obj: LedgerEntry) -> str:
        return str(Money(cents=obj.amount_cents, currency=obj.currency))
