from fastapi import HTTPException
from typing import Optional, Dict, Any

AUTH_INVALID = "AUTH_INVALID"
AUTHZ_DENIED = "AUTHZ_DENIED"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
VALIDATION_FAILED = "VALIDATION_FAILED"
STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
IDP_UNAVAILABLE = "IDP_UNAVAILABLE"
INTERNAL_ERROR = "INTERNAL_ERROR"


def error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "code": code,
        "message": message
    }
    if details:
        body["details"] = details
    return {"error": body}


def raise_api_error(
    code: str,
    status_code: int,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Raise a standardized HTTPException.

    Args:
        code: Error code (AUTH_INVALID, AUTHZ_DENIED, etc.)
        status_code: HTTP Status Code (401, 403, etc.)
        message: Human readable message
        details: Optional extra details
    """
    raise HTTPException(status_code=status_code, detail=error_body(code, message, details))
