class ResultLookupError(Exception):
    """Base error for a student lookup. Carries the HTTP status and caller message."""
    status_code = 500
    message = "Server error while fetching student data"

    def __init__(self, detail: str = ""):
        # detail is for the logs only, never sent to the caller
        super().__init__(detail or self.message)
        self.detail = detail


class InvalidInput(ResultLookupError):
    status_code = 400
    message = "Both admission number and school code are required"


class NotFound(ResultLookupError):
    status_code = 404
    message = "Student not found. Please check admission number and try again."


class Forbidden(ResultLookupError):
    status_code = 403
    message = "Invalid school code for this student."


class UpstreamFailure(ResultLookupError):
    """Sheet unreachable, auth refused or API error."""


class ConfigurationDefect(ResultLookupError):
    """Missing columns, bad credentials or a bad setting. Needs an operator, not a retry."""
