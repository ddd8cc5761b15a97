# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain exceptions shared by the party store and the board.

The server raises them from the service layer; controllers translate them to
HTTP status codes. The board's HTTP client maps status codes back onto the
same classes so callers handle one taxonomy on both sides of the wire.
"""


class PartyStoreError(Exception):
    """Base class for every party store failure."""

    status_code: int = 500
    code: str = "party_store_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(PartyStoreError):
    """A referenced member, party or group does not exist."""

    status_code = 404
    code = "not_found"


class ConflictError(PartyStoreError):
    """Asserted slot occupancy no longer matches the stored state."""

    status_code = 409
    code = "conflict"


class ValidationError(PartyStoreError):
    """Malformed request, e.g. a slot index outside 0-4."""

    status_code = 400
    code = "validation_error"


class TransientNetworkError(PartyStoreError):
    """The request could not complete; safe to retry by hand only."""

    status_code = 503
    code = "transient_network_error"
