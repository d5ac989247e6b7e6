from __future__ import annotations

from catalog.services.differ import ComparePolicy, diff_fields


def test_reports_only_changed_keys_of_the_update() -> None:
    old = {"name": "Cosmic Haze", "description": "old", "source": "Breeder"}
    new = {"name": "Cosmic Haze", "description": "new"}

    diff = diff_fields(old, new)

    assert diff.changed == ["description"]
    assert diff.changes["description"] == {"old": "old", "new": "new"}
    assert bool(diff) is True


def test_no_changes_is_falsy() -> None:
    diff = diff_fields({"name": "A"}, {"name": "A"})
    assert diff.changed == []
    assert not diff


def test_bookkeeping_fields_are_excluded() -> None:
    new = {"updatedAt": "x", "createdAt": "y", "history": [], "reviews": [{"id": "r"}], "id": "z"}
    assert diff_fields({}, new).changed == []


def test_custom_exclusions() -> None:
    diff = diff_fields({"name": "A", "status": "verified"}, {"name": "B", "status": "Live"}, excluded={"status"})
    assert diff.changed == ["name"]


def test_missing_old_key_compares_as_none() -> None:
    assert diff_fields({}, {"source": None}).changed == []
    assert diff_fields({}, {"source": "Breeder"}).changed == ["source"]


def test_nested_key_order_does_not_matter() -> None:
    old = {"thc": {"min": 20.0, "max": 25.0}}
    new = {"thc": {"max": 25.0, "min": 20.0}}
    assert diff_fields(old, new).changed == []


def test_tag_lists_compare_unordered() -> None:
    old = {"effects": ["Happy", "Creative"], "parents": ["A", "B"]}
    new = {"effects": ["Creative", "Happy"], "parents": ["B", "A"]}
    assert diff_fields(old, new).changed == []


def test_other_lists_compare_ordered() -> None:
    old = {"images": [{"id": "1"}, {"id": "2"}]}
    new = {"images": [{"id": "2"}, {"id": "1"}]}
    assert diff_fields(old, new).changed == ["images"]


def test_policy_override() -> None:
    old = {"images": [{"id": "1"}, {"id": "2"}], "effects": ["a", "b"]}
    new = {"images": [{"id": "2"}, {"id": "1"}], "effects": ["b", "a"]}
    diff = diff_fields(old, new, policy={"images": ComparePolicy.unordered})
    assert diff.changed == ["effects"]
