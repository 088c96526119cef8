class AppError(Exception):
    """Base for errors the API maps to a status code."""

    status_code = 500
    error = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.error)
        self.message = message or self.error


class ExtractionFailed(AppError):
    """Decode, empty input or timeout while building peaks. Callers treat it as non-fatal."""

    status_code = 422
    error = "Waveform extraction failed"


class TrackNotFound(AppError):
    status_code = 404
    error = "Track not found"


class VersionNotFound(AppError):
    status_code = 404
    error = "Version not found"


class CommentNotFound(AppError):
    status_code = 404
    error = "Comment not found"


class PermissionDenied(AppError):
    status_code = 403
    error = "Forbidden"


class InvalidComment(AppError):
    status_code = 400
    error = "Invalid input"


class UnsupportedAudio(AppError):
    status_code = 400
    error = "Unsupported file type"


class InvariantViolation(AppError):
    """A track's pin pointer or canonical fields disagree with its versions."""

    error = "Track version invariant violated"


class VersionConflict(AppError):
    """Version number still taken after every retry."""

    status_code = 409
    error = "Version conflict"
