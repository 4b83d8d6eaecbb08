"""Port: filesystem change source — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import AsyncIterator, Protocol

from asset_pipeline.domain.entities import ChangeEvent


class ChangeSource(Protocol):
    """Abstract contract for a filesystem watch subscription."""

    def subscribe(self, root: Path, stop_event: asyncio.Event) -> AsyncIterator[ChangeEvent]:
        """Yield change events under *root* until *stop_event* is set.

        Leaving the iterator (normally, by cancellation or by error) must
        release the underlying subscription.  A failed subscription raises
        :class:`~asset_pipeline.domain.exceptions.WatchError`.
        """
        ...
