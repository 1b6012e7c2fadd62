from fastapi import Request
from fastapi.responses import JSONResponse


class DashboardError(Exception):
    """Base exception for dashboard API errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class NotFoundError(DashboardError):
    def __init__(self, message: str = "Resource not found.", details: dict | None = None):
        super().__init__(code="not_found", message=message, status=404, details=details)


class PanelNotFoundError(DashboardError):
    def __init__(self, panel_id: str):
        super().__init__(
            code="panel_not_found",
            message=f"Panel '{panel_id}' does not exist.",
            status=404,
            details={"panel_id": panel_id},
        )


class InvalidIntervalError(DashboardError):
    def __init__(self, seconds, details: dict | None = None):
        super().__init__(
            code="invalid_interval",
            message=f"Refresh interval must be a non-negative integer, got {seconds!r}.",
            status=422,
            details=details,
        )


class MalformedResponseError(Exception):
    """An upstream payload parsed but did not have the expected shape.

    Raised inside source adapters only; it never leaves the adapter boundary.
    """


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Global exception handler for DashboardError and subclasses."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())
