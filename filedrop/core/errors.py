"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``filedrop.main`` registers a handler that turns them
into ``{"detail": ...}`` JSON responses with the matching status code.
"""


class FiledropError(Exception):
    status_code = 500
    detail = "Internal Server Error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ClientInputError(FiledropError):
    status_code = 400
    detail = "Bad request"


class PayloadTooLargeError(ClientInputError):
    status_code = 413
    detail = "File too large"


class AuthenticationRequired(FiledropError):
    status_code = 401
    detail = "Authorization required"


class AuthorizationError(FiledropError):
    status_code = 403
    detail = "Invalid API key"


class NotFoundError(FiledropError):
    status_code = 404
    detail = "File not found"


class GoneError(FiledropError):
    status_code = 410
    detail = "File has expired"


class StorageError(FiledropError):
    """Object or metadata store failure.

    ``detail`` is what the client sees; the underlying exception is kept on
    ``__cause__`` and logged by whoever raised it.
    """

    status_code = 500
    detail = "Storage is temporarily unavailable"
