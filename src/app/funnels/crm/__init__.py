"""CRM integration layer -- custom value store adapter and push engine.

Provides:
- CustomValueStore / OperationLedger: abstract boundaries of the push engine
- GHLClient: GoHighLevel custom values API (paginated fetch, create, update)
- RemoteIndex: exact/lowercase/normalized lookup over a remote snapshot
- FunnelLockManager: per-funnel push lease (asyncio + optional Redis)
- PushEngine: hash-cached, rate-limited create/update/skip reconciliation
"""

from src.app.funnels.crm.adapter import CustomValueStore, OperationLedger
from src.app.funnels.crm.ghl_client import GHLClient
from src.app.funnels.crm.key_matcher import RemoteIndex, normalize_key
from src.app.funnels.crm.locks import FunnelLockManager
from src.app.funnels.crm.push import PushEngine

__all__ = [
    "CustomValueStore",
    "OperationLedger",
    "GHLClient",
    "RemoteIndex",
    "normalize_key",
    "FunnelLockManager",
    "PushEngine",
]
