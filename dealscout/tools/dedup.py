from typing import Optional, Protocol

from dealscout.models.items import Deal, DealIdentity


class DealStore(Protocol):
    async def find_by_identity(self, source: str, external_id: str) -> Optional[Deal]: ...

    async def find_by_url(self, origin_url: str) -> Optional[Deal]: ...

    async def create(self, deal: Deal) -> Deal: ...


class DedupGate:
    """
    Identity lookup against the store, run per item right before the work it guards.

    (source, external_id) decides when the item has an external id; otherwise only
    an exact origin URL match counts. Similar content under a different URL is
    never a duplicate.
    """

    def __init__(self, store: DealStore):
        self.store = store

    async def is_duplicate(self, identity: DealIdentity) -> bool:
        if identity.external_id:
            return await self.store.find_by_identity(identity.source, identity.external_id) is not None
        if identity.origin_url:
            return await self.store.find_by_url(identity.origin_url) is not None
        return False
