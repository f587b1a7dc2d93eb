"""Uniform JSON envelope: {success, data} / {success, error, code}"""

from typing import Any, Optional


def ok(data: Any = None) -> dict:
    return {"success": True, "data": data}


def error_body(message: str, code: Optional[str] = None, details: Optional[dict] = None) -> dict:
    body: dict[str, Any] = {"success": False, "error": message}
    if code:
        body["code"] = code
    if details:
        body["details"] = details
    return body
