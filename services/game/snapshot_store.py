"""Persistence port for serialized session snapshots."""

from __future__ import annotations

from typing import Dict, Optional, Protocol


class SnapshotStore(Protocol):
	"""Key-value storage for one serialized snapshot per session key."""

	async def save(self, session_key: str, payload: str, *, image_id: Optional[str] = None) -> None:
		...

	async def load(self, session_key: str) -> Optional[str]:
		...

	async def delete(self, session_key: str) -> bool:
		...


class InMemorySnapshotStore:
	"""Process-local snapshot store, used for tests and single-process runs."""

	def __init__(self) -> None:
		self._snapshots: Dict[str, str] = {}

	async def save(self, session_key: str, payload: str, *, image_id: Optional[str] = None) -> None:
		"""Overwrite the snapshot stored under ``session_key``."""
		self._snapshots[session_key] = payload

	async def load(self, session_key: str) -> Optional[str]:
		return self._snapshots.get(session_key)

	async def delete(self, session_key: str) -> bool:
		"""Remove a snapshot; returns True if one existed."""
		return self._snapshots.pop(session_key, None) is not None

	def __contains__(self, session_key: str) -> bool:
		return session_key in self._snapshots

	def __len__(self) -> int:
		return len(self._snapshots)
