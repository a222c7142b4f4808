from typing import Optional

class ApiError(Exception):
    """Base for failures the API reports; carries the HTTP status it maps to."""
    status_code = 500
    message = "An unexpected API error occurred."

    def __init__(self, message: Optional[str] = None, details: Optional[dict] = None):
        self.message = message or type(self).message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}

class InvalidRequestError(ApiError):
    """A required request field is missing or blank."""
    status_code = 400

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Parameter cannot be null (Parameter '{field}')", {"field": field})

class AuthorizationError(ApiError):
    status_code = 401
    message = "Missing or invalid function key."

class RemoteServiceError(ApiError):
    """SharePoint refused or failed a query."""
    status_code = 503
    message = "The SharePoint service request failed."

class SiteConnectionError(RemoteServiceError):
    message = "Could not connect to the SharePoint site."
