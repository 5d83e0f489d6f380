"""Error taxonomy for inventory operations and subscriber delivery."""


class InventoryError(Exception):
    """Base class for errors raised by the store, service and hub."""


class InvalidInput(InventoryError):
    """Request body could not be decoded, or a required id is missing."""


class UnsupportedOperation(InventoryError):
    """Requested verb is not one of CREATE, UPDATE, DELETE."""


class ConnectionFailure(InventoryError):
    """A write to a subscriber connection failed, timed out or overflowed."""
