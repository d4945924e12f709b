"""Remote access to listing rows."""

from __future__ import annotations

import logging

from shared.infrastructure.remote_store import RemoteStoreClient

from .domain.entities import Listing

logger = logging.getLogger(__name__)

LISTING_TABLE = "listings"


class ListingRepository:
    """Reads listings from the hosted database."""

    def __init__(self, store: RemoteStoreClient):
        self.store = store

    def get(self, listing_id: str) -> Listing | None:
        row = self.store.maybe_one(LISTING_TABLE, filters={"id": listing_id})
        if row is None:
            logger.info(f"Listing {listing_id} not found")
            return None
        return Listing.from_row(row)

    def get_active(self, listing_id: str) -> Listing | None:
        listing = self.get(listing_id)
        if listing is None or not listing.is_active:
            return None
        return listing
