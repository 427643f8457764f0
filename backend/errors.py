"""
BreachWatch - Error Taxonomy
Every service failure is one of these. The HTTP layer turns them into
{"success": false, "error": message} with the matching status code.
"""


class BreachWatchError(Exception):
    """Base class for failures reported to the caller."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BreachWatchError):
    """Bad or missing input (email, breach id). User-correctable."""
    status_code = 400


class NotFound(BreachWatchError):
    """Unknown breach or blog post."""
    status_code = 404


class UpstreamError(BreachWatchError):
    """Store or third-party API unreachable or erroring. Not retried."""
    status_code = 502


class GenerationError(BreachWatchError):
    """Text-generation API unusable: no credentials, provider error, timeout, empty output."""
    status_code = 500


class PersistenceError(BreachWatchError):
    """Write failed after a successful computation. The result is discarded."""
    status_code = 500
