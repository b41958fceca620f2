# integrations/http.py

"""
Shared JSON-over-HTTP helper for third-party APIs (stdlib urllib).

- Every call has an explicit timeout.
- Every failure surfaces as IntegrationError (a RuntimeError) carrying the
  upstream HTTP status when there was one. Upstream bodies are truncated
  before they reach logs or messages.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


class IntegrationError(RuntimeError):
    def __init__(self, message: str, *, service: str = "", status_code: int | None = None):
        super().__init__(message)
        self.service = service
        self.status_code = status_code


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    return {"kind": "json", "json": parsed, "raw": raw}


def _error_message(parsed: dict[str, Any], fallback: str) -> str:
    body = parsed.get("json")
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("status") or fallback)
    return _safe_preview(parsed.get("raw") or fallback)


def request_json(
    method: str,
    url: str,
    *,
    service: str,
    headers: dict | None = None,
    body: dict | None = None,
    form: dict | None = None,
    params: dict | None = None,
    timeout: int = 20,
) -> Any:
    if params:
        url = f"{url}?{urlencode(params)}"

    data = None
    merged_headers = {"Accept": "application/json"}
    if body is not None:
        data = json.dumps(body, ensure_ascii=False, default=str).encode("utf-8")
        merged_headers["Content-Type"] = "application/json"
    elif form is not None:
        data = urlencode(form).encode("utf-8")
        merged_headers["Content-Type"] = "application/x-www-form-urlencoded"
    merged_headers.update(headers or {})

    req = Request(url, data=data, headers=merged_headers, method=method)

    try:
        with urlopen(req, timeout=timeout) as resp:
            parsed = _parse_json_or_text(resp.read().decode("utf-8", errors="replace"))
    except HTTPError as e:
        try:
            raw = e.read().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        parsed = _parse_json_or_text(raw)
        msg = _error_message(parsed, f"{service} rejected request")
        raise IntegrationError(f"{service} HTTPError: {e.code} {msg}", service=service, status_code=e.code) from e
    except URLError as e:
        raise IntegrationError(f"{service} URLError: {e.reason}", service=service) from e
    except (TimeoutError, OSError) as e:
        raise IntegrationError(f"{service} request failed: {e}", service=service) from e

    if parsed.get("kind") != "json":
        raise IntegrationError(
            f"{service} returned non-JSON: {_safe_preview(parsed.get('raw') or '')}",
            service=service,
        )

    return parsed.get("json")
