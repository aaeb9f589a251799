"""Exception hierarchy shared by the backend, the CSV tooling and the client.

Every error carries a human-readable (Swedish) message and the HTTP status it
maps to, so the request layer can answer with ``{"error": message}``.
"""


class SlakttradError(Exception):
    """Base class for all expected application errors."""

    status_code = 500
    default_message = "Ett oväntat fel inträffade."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(SlakttradError):
    """Missing or invalid request fields."""

    status_code = 400
    default_message = "Ogiltig input."


class AuthenticationError(SlakttradError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Du måste vara inloggad."


class NotFoundError(SlakttradError):
    """Resource missing, or owned by somebody else."""

    status_code = 404
    default_message = "Resursen finns inte."


class ConflictError(SlakttradError):
    """Duplicate registration or relation."""

    status_code = 409
    default_message = "Posten finns redan."


class CsvImportError(SlakttradError):
    """A CSV file that cannot be imported at all."""

    status_code = 400
    default_message = "CSV-filen kunde inte läsas."


class ImportAborted(SlakttradError):
    """A sequential import stopped at its first failing row.

    Rows created before the failure stay committed.
    """

    status_code = 502

    def __init__(self, created: int, total: int, reason: str):
        self.created = created
        self.total = total
        self.reason = reason
        super().__init__(
            f"Importen avbröts efter {created} av {total} rader: {reason}"
        )


class ApiError(SlakttradError):
    """An error response (or no response) from the REST API."""

    default_message = "Okänt fel."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
