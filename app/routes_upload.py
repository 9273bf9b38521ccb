# routes_upload.py
"""
Routes for the CSV upload -> preview -> save flow.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
)
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from models import TeamMember, Transaction
from app.deps import PENDING_BATCHES, get_db, get_rate_cache, http_error
from app.errors import BatchNotFound, ImportSaveError, NoTransactionsFound
from app.services.classifier import build_context
from app.services.csv_import import parse_csvs
from app.services.exchange_rates import ExchangeRateCache
from app.services.import_cleanup import replace_period_bank, replace_statement
from app.services.import_helpers import build_transaction_from_dict, resolve_period
from app.services.rule_applier import load_rule_set

logger = logging.getLogger(__name__)

router = APIRouter()

INSERT_CHUNK_SIZE = 100


async def _read_upload(file: UploadFile) -> str:
    raw = await file.read()
    # utf-8-sig drops the BOM some bank exports start with
    return raw.decode("utf-8-sig", errors="replace")


# -------------------------------------------------------------------
# Step 1 – process CSV -> preview payload
# -------------------------------------------------------------------

@router.post("/upload/preview")
async def upload_preview(
    csv_files: List[UploadFile] = File(...),
    month: Optional[int] = Form(None),
    year: Optional[int] = Form(None),
    db: Session = Depends(get_db),
    rate_cache: ExchangeRateCache = Depends(get_rate_cache),
):
    """
    Step 1 of the main flow:

    - Receive uploaded CSV files and the target month/year
    - Fetch exchange rates once, before any row is processed
    - Parse every file into canonical transaction dicts (parse_csvs)
    - Store the parsed batch in PENDING_BATCHES[batch_id]
    - Return the batch for review
    """
    if month is not None and not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="month must be between 1 and 12")

    files = [(f.filename or "upload.csv", await _read_upload(f)) for f in csv_files]
    period = resolve_period(month, year, [name for name, _ in files])

    # Rate fetch may hit the network; keep it off the event loop
    rates = await run_in_threadpool(rate_cache.get_rates)
    ctx = build_context(m.beneficiary_account for m in db.query(TeamMember).all())
    user_rules = load_rule_set(db)

    batch: dict = {}
    try:
        parse_csvs(batch, files, period, ctx, rates, user_rules)
    except NoTransactionsFound as e:
        logger.info("[preview] no transactions in %d file(s)", len(files))
        raise http_error(e)

    batch_id = str(uuid.uuid4())
    PENDING_BATCHES[batch_id] = batch

    logger.info(
        "[preview] batch %s: %d transactions for %s (%s)",
        batch_id,
        len(batch["order"]),
        period,
        ", ".join(batch["banks"]),
    )

    return {
        "batch_id": batch_id,
        "period": period,
        "summary": batch["summary"],
        "transactions": [batch["transactions"][tid] for tid in batch["order"]],
        "warnings": batch["warnings"],
    }


# -------------------------------------------------------------------
# Step 2 – save confirmed batch into the DB
# -------------------------------------------------------------------

@router.post("/upload/save-batch")
async def save_batch(
    batch_id: str = Form(...),
    db: Session = Depends(get_db),
):
    """
    Step 2 of the main flow:

    - Delete existing rows for the same (period, bank) pairs
    - Insert the batch in chunks of INSERT_CHUNK_SIZE
    - Replace the statement record for the same filename
    - Drop the batch from memory
    """
    batch = PENDING_BATCHES.get(batch_id)
    if not batch:
        logger.info("[save-batch] No pending data for batch_id=%r", batch_id)
        raise http_error(BatchNotFound(batch_id))

    final = [batch["transactions"][tid] for tid in batch["order"]]
    period = batch["period"]
    filename = ", ".join(batch["filenames"])
    bank = ", ".join(batch["banks"])

    logger.info("[save-batch] Preparing to insert %d transactions for batch_id=%r", len(final), batch_id)

    try:
        replaced = replace_period_bank(db, period, batch["banks"])

        for start in range(0, len(final), INSERT_CHUNK_SIZE):
            chunk: List[Transaction] = [
                build_transaction_from_dict(tx) for tx in final[start : start + INSERT_CHUNK_SIZE]
            ]
            db.add_all(chunk)
            db.flush()

        stmt = replace_statement(db, filename, bank, period, len(final))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("[save-batch] ERROR during DB insert: %r", e)
        raise http_error(ImportSaveError())

    PENDING_BATCHES.pop(batch_id, None)
    logger.info("[save-batch] Successfully inserted %d transactions for batch %r", len(final), batch_id)

    return {
        "saved": len(final),
        "replaced": replaced,
        "period": period,
        "statement": stmt.to_dict(),
    }


@router.delete("/upload/{batch_id}")
def cancel_batch(batch_id: str):
    """Discard a pending batch; nothing is persisted."""
    if PENDING_BATCHES.pop(batch_id, None) is None:
        raise http_error(BatchNotFound(batch_id))
    return {"cancelled": batch_id}
