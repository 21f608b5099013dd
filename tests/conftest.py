from typing import Any, List, Tuple

import pytest

from callrelay import DurableWriter, MemoryStore, SignalingRelay


class RecordingTransport:
    """Captures outbound events instead of delivering them"""

    def __init__(self):
        self.sent: List[Tuple[str, str, Tuple[Any, ...]]] = []

    async def send(self, connection_id: str, event: str, *args: Any) -> None:
        self.sent.append((connection_id, event, args))

    def events_for(self, connection_id: str) -> List[Tuple[str, Tuple[Any, ...]]]:
        return [(event, args) for cid, event, args in self.sent if cid == connection_id]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def relay(transport, store) -> SignalingRelay:
    return SignalingRelay(transport, store=store, writer=DurableWriter(timeout=1.0, retries=1, backoff=0))
