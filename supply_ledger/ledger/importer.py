"""
Client Ledger Importer

Two-step bulk replace of the client ledger:

1. preview(table)  - map, filter and normalize the uploaded rows. Pure;
                     nothing is written. Returns a LedgerImportPreview.
2. commit(preview) - after explicit confirmation by an ADMIN, replace the
                     stored ledger with the preview rows.

COMMIT STRATEGIES:
- Staging backends: batches go to a shadow copy which is then swapped in.
  Any failure leaves the previous ledger live (CommitFailedError), unless
  the swap itself stops halfway and the live sheet cannot be restored
  (LedgerSwapIncompleteError; both sheets are kept for recovery).
- Other backends: delete everything, then insert batch by batch. A failed
  batch leaves only the batches before it (PartialCommitFailure). There is
  no rollback and no retry; the user re-runs the import.
"""

from typing import Any, Iterator, Mapping, Optional, Sequence
from uuid import uuid4

import structlog
from pydantic import ValidationError

from supply_ledger.errors import (
    CommitFailedError,
    ImportValidationError,
    LedgerSwapIncompleteError,
    PartialCommitFailure,
    PermissionDeniedError,
)
from supply_ledger.ledger.mapper import is_header_or_footer, map_columns
from supply_ledger.models.records import (
    LedgerImportPreview,
    LedgerRow,
    SkippedRow,
    SkipReason,
    UserRole,
)
from supply_ledger.normalization import parse_ledger_date, sanitize_number
from supply_ledger.services.storage.interface import (
    IncompleteSwapError,
    LedgerStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 100


def _text(value: Any) -> str:
    """Trimmed cell text. Whole floats (voucher numbers from xlsx) lose the .0"""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_blank(value: Any) -> bool:
    return _text(value) == ""


def _validation_detail(error: ValidationError) -> str:
    """'particulars: String should have at most 500 characters'"""
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )


def chunked(rows: Sequence[LedgerRow], size: int) -> Iterator[Sequence[LedgerRow]]:
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class LedgerImporter:
    """
    Turns uploaded tables into ledger imports and commits them.

    Args:
        storage: Ledger store the import replaces
        batch_size: Rows per insert/stage call
        strict_dates: Reject the whole upload if any row's date cannot be
            parsed, instead of dropping those rows
        dayfirst: Read ambiguous free-form dates as day/month
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        batch_size: int = DEFAULT_BATCH_SIZE,
        strict_dates: bool = False,
        dayfirst: bool = False,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.storage = storage
        self.batch_size = batch_size
        self.strict_dates = strict_dates
        self.dayfirst = dayfirst

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def preview(
        self,
        table: Sequence[Mapping[str, Any]],
        source_filename: Optional[str] = None,
    ) -> LedgerImportPreview:
        """
        Normalize an uploaded table into an uncommitted preview.

        Raises:
            ImportValidationError: No usable rows, or (strict_dates) a row
                with an unparseable date
        """
        rows: list[LedgerRow] = []
        skipped: list[SkippedRow] = []
        mapping = None

        for index, raw in enumerate(table):
            mapping = map_columns(raw)

            if is_header_or_footer(raw.get(mapping.particulars)):
                skipped.append(SkippedRow(row_index=index, reason=SkipReason.HEADER_FOOTER, values=dict(raw)))
                continue

            if all(_is_blank(value) for value in raw.values()):
                skipped.append(SkippedRow(row_index=index, reason=SkipReason.BLANK, values=dict(raw)))
                continue

            parsed_date = parse_ledger_date(raw.get(mapping.date), dayfirst=self.dayfirst)
            if not parsed_date.parsed:
                skipped.append(SkippedRow(row_index=index, reason=SkipReason.UNPARSED_DATE, values=dict(raw)))
                continue

            try:
                row = LedgerRow(
                    id=uuid4(),
                    date=parsed_date.value,
                    particulars=_text(raw.get(mapping.particulars)),
                    voucher_type=_text(raw.get(mapping.voucher_type)),
                    voucher_number=_text(raw.get(mapping.voucher_number)),
                    debit=sanitize_number(raw.get(mapping.debit)),
                    credit=sanitize_number(raw.get(mapping.credit)),
                    description=_text(raw.get(mapping.description)) or None,
                    dr_cr=_text(raw.get(mapping.dr_cr)) or None,
                    account_name=_text(raw.get(mapping.account_name)) or None,
                )
            except ValidationError as e:
                detail = _validation_detail(e)
                logger.warning("ledger_row_invalid", row_index=index, detail=detail)
                skipped.append(SkippedRow(
                    row_index=index,
                    reason=SkipReason.INVALID,
                    values=dict(raw),
                    detail=detail,
                ))
                continue

            if not row.particulars and row.debit == 0 and row.credit == 0:
                skipped.append(SkippedRow(row_index=index, reason=SkipReason.BLANK, values=dict(raw)))
                continue

            rows.append(row)

        preview = LedgerImportPreview(
            source_filename=source_filename,
            rows=rows,
            skipped_rows=skipped,
            total_input_rows=len(table),
            column_mapping=mapping,
        )

        unparsed = preview.skipped_by_reason(SkipReason.UNPARSED_DATE)
        if self.strict_dates and unparsed:
            positions = ", ".join(str(s.row_index + 1) for s in unparsed[:10])
            raise ImportValidationError(
                f"{len(unparsed)} row(s) have a date that could not be read "
                f"(rows {positions}). Fix the dates and upload again.",
                skipped_count=len(skipped),
            )

        if not rows:
            raise ImportValidationError(
                self._empty_message(preview),
                skipped_count=len(skipped),
            )

        logger.info(
            "ledger_import_previewed",
            import_id=str(preview.import_id),
            rows=preview.row_count,
            skipped=len(skipped),
            source=source_filename,
        )
        return preview

    @staticmethod
    def _empty_message(preview: LedgerImportPreview) -> str:
        if preview.total_input_rows == 0:
            return "The uploaded file has no data rows."
        counts = {
            reason: len(preview.skipped_by_reason(reason))
            for reason in SkipReason
        }
        return (
            "No valid ledger rows found. "
            f"{preview.total_input_rows} row(s) read: "
            f"{counts[SkipReason.HEADER_FOOTER]} header/total, "
            f"{counts[SkipReason.UNPARSED_DATE]} with unreadable dates, "
            f"{counts[SkipReason.BLANK]} blank, "
            f"{counts[SkipReason.INVALID]} with values too long or out of range."
        )

    # -------------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------------

    async def commit(
        self,
        preview: LedgerImportPreview,
        role: UserRole,
        actor: Optional[str] = None,
    ) -> int:
        """
        Replace the stored ledger with the preview rows.

        Returns:
            Number of rows committed

        Raises:
            PermissionDeniedError: role is not ADMIN
            CommitFailedError: failed while the previous ledger is intact
            LedgerSwapIncompleteError: the staged swap stopped with no live
                ledger sheet
            PartialCommitFailure: a batch failed after the previous ledger
                was deleted
        """
        if UserRole(role) != UserRole.ADMIN:
            raise PermissionDeniedError(
                f"Only an ADMIN can replace the client ledger (user {actor or 'unknown'} is {UserRole(role).value})"
            )

        log = logger.bind(import_id=str(preview.import_id), actor=actor, rows=preview.row_count)

        if self.storage.supports_staging:
            committed = await self._commit_staged(preview, log)
        else:
            committed = await self._commit_replace(preview, log)

        log.info("ledger_import_committed", committed=committed)
        return committed

    async def _commit_staged(self, preview: LedgerImportPreview, log) -> int:
        try:
            await self.storage.discard_staged()
            for number, batch in enumerate(chunked(preview.rows, self.batch_size), start=1):
                await self.storage.stage_batch(batch)
                log.debug("ledger_batch_staged", batch=number, size=len(batch))
            return await self.storage.swap_staged()
        except IncompleteSwapError as e:
            # The staged copy is the only complete new ledger; keep it
            log.critical(
                "ledger_swap_incomplete",
                retired_sheet=e.retired_sheet,
                staged_sheet=e.staged_sheet,
                error=str(e),
            )
            raise LedgerSwapIncompleteError(
                f"Ledger import stopped halfway through the swap: {e}",
                retired_sheet=e.retired_sheet,
                staged_sheet=e.staged_sheet,
            ) from e
        except StorageError as e:
            log.error("ledger_import_stage_failed", error=str(e))
            try:
                await self.storage.discard_staged()
            except StorageError as cleanup_error:
                log.warning("ledger_staging_cleanup_failed", error=str(cleanup_error))
            raise CommitFailedError(
                f"Ledger import failed; the previous ledger is unchanged: {e}"
            ) from e

    async def _commit_replace(self, preview: LedgerImportPreview, log) -> int:
        try:
            deleted = await self.storage.delete_all()
        except StorageError as e:
            log.error("ledger_delete_failed", error=str(e))
            raise CommitFailedError(
                f"Could not clear the existing ledger; nothing was changed: {e}"
            ) from e
        log.info("ledger_cleared", deleted=deleted)

        committed = 0
        total = preview.row_count
        for number, batch in enumerate(chunked(preview.rows, self.batch_size), start=1):
            try:
                committed += await self.storage.insert_batch(batch)
            except StorageError as e:
                log.error(
                    "ledger_batch_failed",
                    batch=number,
                    committed=committed,
                    error=str(e),
                )
                raise PartialCommitFailure(
                    f"Batch {number} failed after the old ledger was deleted. "
                    f"{committed} of {total} rows are saved; re-run the import.",
                    failed_batch=number,
                    committed_rows=committed,
                    total_rows=total,
                    cause=e,
                ) from e
            log.debug("ledger_batch_inserted", batch=number, size=len(batch))

        return committed
