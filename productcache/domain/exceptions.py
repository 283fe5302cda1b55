"""
Business Exceptions

Errors surfaced to callers of the product caches. Each carries a stable
return code so callers can tell "does not exist" from "not yours".
"""

from enum import Enum
from typing import Any, Dict, Optional


class ReturnNo(str, Enum):
    """Business return codes."""

    RESOURCE_ID_NOTEXIST = "RESOURCE_ID_NOTEXIST"
    RESOURCE_ID_OUTSCOPE = "RESOURCE_ID_OUTSCOPE"


class BusinessException(Exception):
    """Base exception for business rule violations.

    Never retried internally; always propagated to the caller.
    """

    def __init__(
        self,
        return_no: ReturnNo,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.return_no = return_no
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return self.return_no.value


class ResourceNotFoundException(BusinessException):
    """Raised when a row does not exist."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            ReturnNo.RESOURCE_ID_NOTEXIST,
            f"{resource} id {resource_id} does not exist",
            details={"resource": resource, "id": resource_id},
        )


class ResourceOutOfScopeException(BusinessException):
    """Raised when a row exists but belongs to another shop."""

    def __init__(self, resource: str, resource_id: Any, shop_id: Any):
        super().__init__(
            ReturnNo.RESOURCE_ID_OUTSCOPE,
            f"{resource} id {resource_id} is outside the scope of shop {shop_id}",
            details={"resource": resource, "id": resource_id, "shop_id": shop_id},
        )
