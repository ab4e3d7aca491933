"""
Domain exceptions for the financial-derivation engine.

Parse failures (dates, numbers) are NOT here on purpose: they are absorbed
by the normalizers and never raised. Storage exceptions live with the
storage interface.
"""

from typing import Optional


class SupplyLedgerError(Exception):
    """Base exception for engine errors surfaced to the user."""
    pass


class ImportValidationError(SupplyLedgerError):
    """
    The uploaded table produced zero usable ledger rows.

    Raised before any commit, so stored data is untouched.
    """

    def __init__(self, message: str, skipped_count: int = 0):
        super().__init__(message)
        self.skipped_count = skipped_count


class CommitFailedError(SupplyLedgerError):
    """Committing an import failed while the previous ledger is still intact."""
    pass


class PartialCommitFailure(SupplyLedgerError):
    """
    A batch insert failed AFTER the previous ledger was deleted.

    The store now holds only the batches that succeeded. This is a fatal,
    manually-retried condition: the old data is gone.
    """

    def __init__(
        self,
        message: str,
        failed_batch: int,
        committed_rows: int,
        total_rows: int,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.failed_batch = failed_batch
        self.committed_rows = committed_rows
        self.total_rows = total_rows
        self.cause = cause


class PermissionDeniedError(SupplyLedgerError):
    """The acting user's role does not allow this operation."""
    pass


class EmptyInvoiceError(SupplyLedgerError):
    """Rendering was requested for an invoice with no matching entries."""

    def __init__(self, month: str, category: str):
        super().__init__(f"No entries found for {category} in {month}")
        self.month = month
        self.category = category


class LedgerSwapIncompleteError(SupplyLedgerError):
    """
    The staged ledger swap stopped halfway and could not be undone.

    No sheet carries the live ledger title. The previous ledger sits under
    retired_sheet and the complete new one under staged_sheet; renaming
    either back restores service.
    """

    def __init__(self, message: str, retired_sheet: str, staged_sheet: str):
        super().__init__(message)
        self.retired_sheet = retired_sheet
        self.staged_sheet = staged_sheet
