from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional

from ..deps import get_current_user
from ..logs import json_log
from ..lookup.firecrawl import FirecrawlError
from ..lookup.product_lookup import extract_product, identify_and_fetch, lookup_barcode

router = APIRouter(tags=["functions"])


class BarcodeIn(BaseModel):
    barcode: Optional[str] = None


class ExtractIn(BaseModel):
    url: Optional[str] = None


class IdentifyIn(BaseModel):
    code: str


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/functions/product-lookup")
def product_lookup(data: BarcodeIn):
    barcode = (data.barcode or "").strip()
    if not barcode:
        return _fail(400, "Barcode is required")
    try:
        found = lookup_barcode(barcode)
    except FirecrawlError as e:
        json_log("warn", "lookup.barcode.failed", barcode=barcode, error=str(e))
        return _fail(e.status_code, str(e))
    return {"success": True, "data": found}


@router.post("/functions/firecrawl-product-extract")
def firecrawl_product_extract(data: ExtractIn):
    url = (data.url or "").strip()
    if not url:
        return _fail(400, "URL is required")
    try:
        out = extract_product(url)
    except FirecrawlError as e:
        json_log("warn", "lookup.extract.failed", url=url, error=str(e))
        return _fail(e.status_code, str(e))
    return {"success": True, "data": out}


@router.post("/products/identify")
def identify_product(data: IdentifyIn, user=Depends(get_current_user)):
    try:
        info = identify_and_fetch(data.code)
    except FirecrawlError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    if not info:
        raise HTTPException(status_code=404, detail="product not recognised")
    return {"product": info}
