"""Domain errors raised by the lifecycle services.

Each carries the HTTP status the API layer renders it with; the services
themselves never import FastAPI.
"""


class TuitionFinderError(Exception):
    status_code = 500
    default_message = 'Internal error.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(TuitionFinderError):
    status_code = 401
    default_message = 'Unauthorized access.'


class Forbidden(TuitionFinderError):
    status_code = 403
    default_message = 'Forbidden.'


class NotFound(TuitionFinderError):
    status_code = 404
    default_message = 'Not found.'


class Conflict(TuitionFinderError):
    status_code = 409
    default_message = 'Conflicting state.'


class InvalidArgument(TuitionFinderError):
    status_code = 400
    default_message = 'Invalid argument.'
