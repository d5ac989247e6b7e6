"""Change-set differ — which top-level fields an update actually changes."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

# Bookkeeping fields; reviews are appended through their own operation.
DEFAULT_EXCLUDED_FIELDS: frozenset[str] = frozenset(
	{"updatedAt", "createdAt", "history", "reviews", "id"}
)


class ComparePolicy(StrEnum):
	ordered = "ordered"
	unordered = "unordered"


# Tag-like lists where reordering carries no meaning.
FIELD_COMPARE_POLICY: dict[str, ComparePolicy] = {
	"effects": ComparePolicy.unordered,
	"medicalEffects": ComparePolicy.unordered,
	"flavors": ComparePolicy.unordered,
	"parents": ComparePolicy.unordered,
	"children": ComparePolicy.unordered,
}


@dataclass(slots=True)
class FieldDiff:
	changed: list[str] = field(default_factory=list)
	changes: dict[str, dict[str, Any]] = field(default_factory=dict)

	def __bool__(self) -> bool:
		return bool(self.changed)


def diff_fields(
	old: Mapping[str, Any] | None,
	new: Mapping[str, Any],
	excluded: Iterable[str] = DEFAULT_EXCLUDED_FIELDS,
	policy: Mapping[str, ComparePolicy] | None = None,
) -> FieldDiff:
	"""Compare every key of ``new`` with the same key of ``old``.

	A key absent from ``old`` compares as ``None``.  Values are compared in
	canonical JSON form, so dict key order never matters; list order matters
	unless the field's policy is ``unordered``.
	"""
	previous = old or {}
	skip = set(excluded)
	policies = FIELD_COMPARE_POLICY if policy is None else policy
	result = FieldDiff()
	for key, new_value in new.items():
		if key in skip:
			continue
		old_value = previous.get(key)
		mode = policies.get(key, ComparePolicy.ordered)
		if _canonical(old_value, mode) != _canonical(new_value, mode):
			result.changed.append(key)
			result.changes[key] = {"old": _plain(old_value), "new": _plain(new_value)}
	return result


def _plain(value: Any) -> Any:
	if isinstance(value, BaseModel):
		return value.model_dump(by_alias=True, mode="json")
	if isinstance(value, list):
		return [_plain(item) for item in value]
	if isinstance(value, Mapping):
		return {key: _plain(item) for key, item in value.items()}
	return value


def _canonical(value: Any, mode: ComparePolicy) -> str:
	plain = _plain(value)
	if mode == ComparePolicy.unordered and isinstance(plain, list):
		plain = sorted(json.dumps(item, sort_keys=True, default=str) for item in plain)
	return json.dumps(plain, sort_keys=True, default=str)
