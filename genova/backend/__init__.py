"""Boundary to the managed backend: records, change notifications, blobs and named actions."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .actions import ActionClient, ActionRequest
from .changes import ChangeEvent, ChangeFeed, ChangeKind, Subscription
from .storage import BlobStorage
from .store import RecordStore


@dataclass
class Backend:
    """Bundle of backend collaborators handed to every workflow."""

    store: RecordStore
    changes: ChangeFeed
    storage: BlobStorage
    actions: ActionClient

    @classmethod
    def local(
        cls,
        data_dir: Path,
        functions_url: str = "http://localhost:54321/functions/v1",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
    ) -> "Backend":
        """File-backed records and blobs under ``data_dir``, HTTP named actions."""
        data_dir = Path(data_dir)
        feed = ChangeFeed()
        return cls(
            store=RecordStore(data_dir / "tables", feed=feed),
            changes=feed,
            storage=BlobStorage(data_dir / "storage"),
            actions=ActionClient(functions_url, api_key=api_key, timeout=timeout),
        )


__all__ = [
    "Backend",
    "ActionClient",
    "ActionRequest",
    "BlobStorage",
    "ChangeEvent",
    "ChangeFeed",
    "ChangeKind",
    "RecordStore",
    "Subscription",
]
