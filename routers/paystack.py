from typing import AsyncIterator
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from core.config import logger, PAYSTACK_API_BASE, PAYSTACK_SECRET_KEY, PAYSTACK_TIMEOUT_SEC

router = APIRouter(prefix="/api/paystack", tags=["payments"])


async def get_paystack_client() -> AsyncIterator[httpx.AsyncClient]:
    """Dependency so tests can swap in a client backed by httpx.MockTransport."""
    async with httpx.AsyncClient(
        base_url=PAYSTACK_API_BASE,
        timeout=PAYSTACK_TIMEOUT_SEC,
        headers={"Authorization": f"Bearer {PAYSTACK_SECRET_KEY}"},
    ) as client:
        yield client


def _verified(response: httpx.Response, body) -> bool:
    if not response.is_success or not isinstance(body, dict) or not body.get("status"):
        return False
    data = body.get("data")
    return isinstance(data, dict) and data.get("status") == "success"


@router.post("/verify")
async def verify_payment(payload: dict = Body(...), client: httpx.AsyncClient = Depends(get_paystack_client)):
    reference = (payload or {}).get("reference")
    if not reference:
        return JSONResponse({"error": "Reference is required"}, status_code=400)
    try:
        r = await client.get(f"/transaction/verify/{quote(str(reference), safe='')}")
        try:
            body = r.json()
        except ValueError:
            body = None
        if not _verified(r, body):
            logger.warning(f"[paystack.verify] reference={reference} http={r.status_code} rejected")
            return JSONResponse({"error": "Payment verification failed"}, status_code=400)
        logger.info(f"[paystack.verify] reference={reference} verified")
        return {"status": True, "data": body["data"]}
    except Exception as ex:
        logger.exception(f"[paystack.verify] reference={reference} failed: {ex}")
        return JSONResponse({"error": "Failed to verify payment"}, status_code=500)
