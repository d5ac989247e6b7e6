"""Document store contract, write sentinels and the shared partial-update merge.

A store holds JSON-like documents grouped in named collections.  Partial
updates may carry two sentinels that the store resolves at write time:

* ``SERVER_TIMESTAMP`` — replaced by the store's own clock.
* ``ArrayAppend(*items)`` — appended to the existing list field (created when
  absent), in the same write as every other field of the update.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


class StoreError(RuntimeError):
	"""A write or read the backing store could not complete."""


class _ServerTimestamp:
	_instance: _ServerTimestamp | None = None

	def __new__(cls) -> _ServerTimestamp:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True, slots=True, init=False)
class ArrayAppend:
	"""Append ``items`` to a list field as part of an update."""

	items: tuple[Any, ...]

	def __init__(self, *items: Any) -> None:
		object.__setattr__(self, "items", tuple(items))


@dataclass(slots=True)
class DocumentSnapshot:
	id: str
	data: dict[str, Any] = field(default_factory=dict)


def apply_partial(
	data: Mapping[str, Any],
	partial: Mapping[str, Any],
	timestamp: Any,
) -> dict[str, Any]:
	"""Return a new document with ``partial`` merged over ``data``.

	``data`` is never modified; callers swap the result in only once the whole
	write has been prepared.
	"""
	merged = copy.deepcopy(dict(data))
	for key, value in partial.items():
		if value is SERVER_TIMESTAMP:
			merged[key] = timestamp
		elif isinstance(value, ArrayAppend):
			existing = merged.get(key)
			current = list(existing) if isinstance(existing, list) else []
			current.extend(copy.deepcopy(list(value.items)))
			merged[key] = current
		else:
			merged[key] = copy.deepcopy(value)
	return merged


class DocumentStore(ABC):
	"""Async document store used by the catalog services."""

	@abstractmethod
	async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
		"""Return the document or ``None`` when it does not exist."""

	@abstractmethod
	async def list(self, collection: str, order_by: str | None = None) -> list[DocumentSnapshot]:
		"""Return every document of ``collection`` ordered by ``order_by``."""

	@abstractmethod
	async def add(self, collection: str, record: Mapping[str, Any]) -> str:
		"""Insert a new document and return its store-assigned id."""

	@abstractmethod
	async def update(self, collection: str, doc_id: str, partial: Mapping[str, Any]) -> None:
		"""Apply ``partial`` atomically; raises ``LookupError`` for a missing id."""

	@abstractmethod
	async def batch_update(
		self,
		collection: str,
		updates: Sequence[tuple[str, Mapping[str, Any]]],
	) -> None:
		"""Apply several partial updates; all of them or none are applied."""
