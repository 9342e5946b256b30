"""
Error taxonomy shared by the cart, order and catalogue services.

Routers translate these into HTTP responses through the exception
handlers registered in ``ezyeats.main``.
"""


class EzyeatsError(Exception):
    """Base class for all service errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EzyeatsError):
    """Malformed caller input: empty cart, missing shop, missing pickup time"""

    status_code = 400


class NotFoundError(EzyeatsError):
    """Referenced order or shop does not exist"""

    status_code = 404


class InvalidStateError(EzyeatsError):
    """Illegal status transition, e.g. cancelling a confirmed order"""

    status_code = 409


class PersistenceError(EzyeatsError):
    """Durable store I/O failure"""

    status_code = 503


class LiveSyncError(EzyeatsError):
    """Live-sync mirror unavailable or rejected a write"""

    status_code = 503
