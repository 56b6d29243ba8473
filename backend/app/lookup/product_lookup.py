import json
import re
from datetime import datetime, timezone
from typing import Any, Optional

from ..config import settings
from ..logs import json_log
from . import firecrawl

_DOMAIN_RE = re.compile(r"^(www\.)?[a-zA-Z0-9][-a-zA-Z0-9]*(\.[a-zA-Z0-9][-a-zA-Z0-9]*)+")


def is_valid_url(text: str) -> bool:
    t = (text or "").strip()
    if t.startswith("http://") or t.startswith("https://"):
        return True
    return bool(_DOMAIN_RE.match(t))


def format_url(url: str) -> str:
    t = (url or "").strip()
    if not t.startswith("http://") and not t.startswith("https://"):
        t = f"https://{t}"
    return t


def lookup_barcode(barcode: str) -> dict[str, Any]:
    """
    Barcode -> {name, brand, category, description, sourceUrl}.

    Without a scrape API key this returns a deterministic placeholder so the
    scanner flow stays usable in local/dev.
    """
    code = (barcode or "").strip()
    if not code:
        raise ValueError("Barcode is required")

    if not settings.firecrawl_api_key:
        return {
            "name": f"Product {code}",
            "brand": "Mock Brand",
            "category": "General",
            "description": "This is a mock description because FIRECRAWL_API_KEY is not set.",
            "sourceUrl": "mock://fallback",
        }

    res = firecrawl.search_barcode(code)
    if not res.get("success"):
        raise firecrawl.FirecrawlError(res.get("error") or "Firecrawl search failed")

    results = res.get("data") or []
    first = results[0] if results else {}
    extracted = (first.get("metadata") or {}).get("json") or {}
    if not isinstance(extracted, dict):
        extracted = {}
    return {
        "name": extracted.get("name") or first.get("title") or "Unknown Product",
        "description": extracted.get("description") or first.get("description") or "",
        "category": extracted.get("category") or "General",
        "brand": extracted.get("brand") or "",
        "sourceUrl": first.get("url") or "",
    }


def _filled_fields(extracted: dict[str, Any]) -> list[str]:
    fields = list(firecrawl.PRODUCT_EXTRACTION_SCHEMA["properties"].keys())
    return [f for f in fields if extracted.get(f) not in (None, "")]


def extract_product(url: str) -> dict[str, Any]:
    target = format_url(url)
    json_log("info", "lookup.extract.start", url=target)
    res = firecrawl.scrape_product(target)
    data = res.get("data") or {}
    extracted = data.get("extract") or {}
    filled = _filled_fields(extracted)
    props = firecrawl.PRODUCT_EXTRACTION_SCHEMA["properties"]
    return {
        "extracted": extracted,
        "markdown": data.get("markdown") or "",
        "metadata": {
            **(data.get("metadata") or {}),
            "sourceUrl": target,
            "extractedAt": datetime.now(timezone.utc).isoformat(),
            "fieldsExtracted": len(filled),
            "totalFields": len(props),
            "filledFields": filled,
            "schema": props,
        },
    }


def _from_json_payload(code: str) -> Optional[dict[str, Any]]:
    if not (code.startswith("{") and code.endswith("}")):
        return None
    try:
        data = json.loads(code)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    name = data.get("name") or data.get("product_name")
    if not name:
        return None
    return {
        "name": name,
        "category": data.get("category") or data.get("cat"),
        "description": data.get("description") or data.get("desc"),
        "barcode": data.get("barcode") or data.get("sku") or data.get("id") or code,
        "brand": data.get("brand"),
        "images": [],
    }


def _from_pipe_payload(code: str) -> Optional[dict[str, Any]]:
    # barcode|name|category|description
    if "|" not in code:
        return None
    parts = [p.strip() for p in code.split("|")]
    if len(parts) < 2:
        return None
    return {
        "barcode": parts[0],
        "name": parts[1],
        "category": parts[2] if len(parts) > 2 else None,
        "description": parts[3] if len(parts) > 3 else None,
        "brand": None,
        "images": [],
    }


def identify_and_fetch(code: str) -> Optional[dict[str, Any]]:
    """
    Turn whatever the scanner produced into product info.

    Accepts a JSON object label, a pipe-delimited label, or a numeric barcode
    (looked up remotely). Anything else yields None.
    """
    raw = (code or "").strip()
    if not raw:
        return None

    info = _from_json_payload(raw) or _from_pipe_payload(raw)
    if info:
        return info

    if raw.isdigit():
        found = lookup_barcode(raw)
        image = found.get("image") if isinstance(found.get("image"), str) else None
        return {
            "name": found.get("name") or "Unknown Product",
            "category": found.get("category") or "General",
            "description": found.get("description") or "",
            "barcode": raw,
            "brand": found.get("brand"),
            "images": [image] if image else [],
        }
    return None
