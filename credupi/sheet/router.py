"""Sheet endpoint — the POST-only script web app the gateway talks to.

GET is a health probe, POST appends a row, OPTIONS answers preflight.
Malformed JSON bodies fall back to query parameters.
"""

import json
from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, Request, Response

from credupi.config import settings
from credupi.schemas.waitlist import utc_timestamp
from credupi.sheet.store import CsvSheetStore

logger = structlog.get_logger()

router = APIRouter(tags=["sheet"])

ENTRY_FIELDS = ("intent", "userType", "phone")


@lru_cache(maxsize=1)
def get_sheet_store() -> CsvSheetStore:
    return CsvSheetStore(settings.sheet_csv_path)


def _from_params(request: Request) -> dict:
    params = request.query_params
    return {
        "timestamp": params.get("timestamp") or utc_timestamp(),
        "intent": params.get("intent", ""),
        "userType": params.get("userType", ""),
        "phone": params.get("phone", ""),
    }


@router.get("/exec")
async def sheet_health() -> dict:
    """Health probe."""
    return {
        "status": "OK",
        "message": "Sheet endpoint is running. Use POST to submit waitlist entries.",
        "timestamp": utc_timestamp(),
    }


@router.post("/exec")
async def sheet_append(
    request: Request,
    store: CsvSheetStore = Depends(get_sheet_store),
) -> dict:
    """Append one waitlist entry as a new row.

    Always answers 200; failures are reported with `success: false`.
    """
    body = await request.body()
    data = None
    if body:
        try:
            data = json.loads(body)
        except ValueError as e:
            logger.warning("sheet_json_parse_error", error=str(e))
    if not isinstance(data, dict):
        data = _from_params(request)

    if not any(data.get(name) for name in ENTRY_FIELDS):
        return {"success": False, "error": "No data provided"}

    row = [
        str(data.get("timestamp") or utc_timestamp()),
        str(data.get("intent") or ""),
        str(data.get("userType") or ""),
        str(data.get("phone") or ""),
    ]
    try:
        store.append_row(row)
    except Exception as e:
        logger.error("sheet_append_failed", error=str(e))
        return {"success": False, "error": str(e), "message": "Failed to save entry"}

    logger.info("sheet_entry_saved", intent=row[1], user_type=row[2])
    return {"success": True, "message": "Entry saved successfully"}


@router.options("/exec")
async def sheet_preflight() -> Response:
    """CORS preflight: empty 200."""
    return Response(status_code=200, media_type="application/json")
