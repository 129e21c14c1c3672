class ScoreboardError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ScoreboardError):
    status_code = 400


class ConflictError(ScoreboardError):
    status_code = 400

    def __init__(self, field: str, value: str, message: str):
        self.field = field
        self.value = value
        super().__init__(message)


class NotFoundError(ScoreboardError):
    status_code = 404


class BackendUnavailableError(ScoreboardError):
    status_code = 500

    def __init__(self, message: str = 'Data store unavailable. Please try again later.'):
        super().__init__(message)
