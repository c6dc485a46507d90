"""
Domain errors

Every error raised by the catalog, account and auth layers derives from
StoreError and carries the HTTP status it maps to. main.py registers a
single handler that turns them into {"status": false, "message": ...}.
"""
from typing import Any, Dict


class StoreError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": False, "message": self.message}


class ValidationError(StoreError):
    status_code = 400
    message = "Missing required fields"


class ConflictError(StoreError):
    status_code = 400
    message = "Resource already exists"


class Unauthorized(StoreError):
    status_code = 401
    message = "Unauthorized access"


class Forbidden(StoreError):
    status_code = 403
    message = "Forbidden"


class NotFound(StoreError):
    status_code = 404
    message = "Not found"


class CategoryNotFound(NotFound):
    message = "Category not found"


class TokenMissing(Unauthorized):
    message = "Token not provided"


class TokenInvalid(Unauthorized):
    message = "Invalid token"


class TokenExpired(Unauthorized):
    message = "Token expired"
    # Lets clients tell an expired session apart from a bad token
    code = 700

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["statusCode"] = self.code
        return body


class UploadError(StoreError):
    status_code = 500
    message = "File upload error"


class ServerError(StoreError):
    status_code = 500
