import json
import urllib.request
import urllib.error
from typing import Any

from ..config import settings


# Extractable product fields, mirrored from the `products` table columns.
PRODUCT_EXTRACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Product name or title"},
        "sku": {"type": "string", "description": "Stock Keeping Unit code"},
        "barcode": {"type": "string", "description": "Barcode or UPC/EAN code"},
        "description": {"type": "string", "description": "Product description"},
        "selling_price": {
            "type": "number",
            "description": "Selling/retail price (numeric value only, no currency symbols)",
        },
        "purchase_price": {"type": "number", "description": "Purchase/cost price if available"},
        "wholesale_price": {"type": "number", "description": "Wholesale price if available"},
        "stock_quantity": {"type": "number", "description": "Available stock quantity"},
        "category": {"type": "string", "description": "Product category name"},
        "brand": {"type": "string", "description": "Brand or manufacturer name"},
        "weight": {"type": "string", "description": "Product weight with unit"},
        "dimensions": {"type": "string", "description": "Product dimensions"},
        "image_url": {"type": "string", "description": "Main product image URL"},
        "specifications": {
            "type": "object",
            "description": "Additional product specifications as key-value pairs",
            "additionalProperties": {"type": "string"},
        },
    },
    "required": ["name"],
}

EXTRACTION_PROMPT = (
    "Extract product information from this e-commerce page.\n"
    "Focus on finding: product name, SKU, barcode, description, prices (selling price, purchase price, wholesale price),\n"
    "stock quantity, category, brand, weight, dimensions, and main product image URL.\n"
    "For prices, extract only the numeric value without currency symbols.\n"
    "If a field is not found, leave it as null.\n"
    "Return the data in the exact schema format provided."
)


class FirecrawlError(RuntimeError):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def _post_json(path: str, payload: dict[str, Any]) -> dict[str, Any]:
    if not settings.firecrawl_api_key:
        raise FirecrawlError("FIRECRAWL_API_KEY is not configured", status_code=500)
    url = f"{settings.firecrawl_base_url}{path}"
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Authorization": f"Bearer {settings.firecrawl_api_key}", "Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=settings.lookup_timeout_seconds) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace") if hasattr(e, "read") else str(e)
        try:
            message = json.loads(body).get("error") or body
        except Exception:
            message = body
        raise FirecrawlError(f"Firecrawl HTTP {getattr(e, 'code', '?')}: {message}", status_code=getattr(e, "code", 502)) from e
    except urllib.error.URLError as e:
        raise FirecrawlError(f"Firecrawl unreachable: {e.reason}") from e


def search_barcode(barcode: str) -> dict[str, Any]:
    return _post_json(
        "/v1/search",
        {
            "query": f"product barcode {barcode}",
            "limit": 1,
            # Prefer Indonesian results.
            "lang": "id",
            "scrapeOptions": {
                "formats": ["json"],
                "jsonOptions": {
                    "prompt": f"Extract product details for barcode {barcode}. Return: name, brand, category, description."
                },
            },
        },
    )


def scrape_product(url: str) -> dict[str, Any]:
    return _post_json(
        "/v1/scrape",
        {
            "url": url,
            "formats": ["extract", "markdown"],
            "extract": {"schema": PRODUCT_EXTRACTION_SCHEMA, "prompt": EXTRACTION_PROMPT},
            "onlyMainContent": True,
        },
    )
