from __future__ import annotations


class SkinDBError(Exception):
    """Base class for store errors."""


class InvalidInput(SkinDBError, ValueError):
    """Observation does not describe a storable item (e.g. non-positive wear)."""


class StorageUnavailable(SkinDBError):
    """Backend transport, transaction or timeout failure. Safe to retry."""


class ItemNotFound(SkinDBError, LookupError):
    """No record is stored for the requested asset id."""

    def __init__(self, asset_id: int) -> None:
        super().__init__(f"no item stored for asset {asset_id}")
        self.asset_id = asset_id


class AssetConflict(SkinDBError):
    """Asset id is already stored under a different canonical key."""

    def __init__(self, asset_id: int, stored_key: str, incoming_key: str) -> None:
        super().__init__(
            f"asset {asset_id} already stored as {stored_key!r}, refusing {incoming_key!r}"
        )
        self.asset_id = asset_id
        self.stored_key = stored_key
        self.incoming_key = incoming_key
