"""Root of the fleet-commons exception hierarchy.

Every error raised by the library derives from ``FleetCommonsError`` and
carries a machine readable code plus a details mapping, so a host service
can render it with ``create_error_response`` without knowing the subclass.
"""

from typing import Any, Dict, Optional


class FleetCommonsError(Exception):
    """Base exception for fleet-commons.
    
    ``error_code`` defaults to the class name; ``details`` holds the values
    needed to explain the failure, such as an offending role name.
    """
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_response(exception: FleetCommonsError) -> Dict[str, Any]:
    """Render an exception as the ``{"error": {...}}`` body of an API response."""
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
