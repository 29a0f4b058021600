from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from contractctl.compiler.breaking import CHANGED, REMOVED, BreakingChange, detect_breaking_changes, load_prior_contract
from contractctl.errors import ScriptError
from contractctl.exit_codes import ERR_CONFIG


def _op(schema_type: str = "object", description: str = "ok") -> dict:
    return {
        "summary": "s",
        "responses": {
            "200": {
                "description": description,
                "content": {"application/json": {"schema": {"type": schema_type}, "example": {"a": 1}}},
            }
        },
    }


def test_removed_path_is_reported_once() -> None:
    old = {"paths": {"/a": {"get": _op(), "post": _op()}, "/b": {"get": _op()}}}
    new = {"paths": {"/b": {"get": _op()}}}
    assert detect_breaking_changes(new, old) == [BreakingChange(REMOVED, "/a")]


def test_removed_method() -> None:
    old = {"paths": {"/a": {"get": _op(), "delete": _op()}}}
    new = {"paths": {"/a": {"get": _op()}}}
    changes = detect_breaking_changes(new, old)
    assert changes == [BreakingChange(REMOVED, "/a", "delete")]
    assert str(changes[0]) == "REMOVED: DELETE /a"


def test_description_and_example_edits_are_not_breaking() -> None:
    old = {"paths": {"/a": {"get": _op(description="old")}}}
    new_op = _op(description="new")
    new_op["responses"]["200"]["content"]["application/json"]["example"] = {"b": 2}
    assert detect_breaking_changes({"paths": {"/a": {"get": new_op}}}, old) == []


def test_schema_change_is_breaking() -> None:
    old = {"paths": {"/a": {"get": _op("object")}}}
    new = {"paths": {"/a": {"get": _op("string")}}}
    changes = detect_breaking_changes(new, old)
    assert changes == [BreakingChange(CHANGED, "/a", "get", "200")]
    assert str(changes[0]) == "CHANGED: GET /a response 200 schema"


def test_added_paths_and_methods_are_not_breaking() -> None:
    old = {"paths": {"/a": {"get": _op()}}}
    new = {"paths": {"/a": {"get": _op(), "post": _op()}, "/b": {"get": _op()}}}
    assert detect_breaking_changes(new, old) == []


def test_integer_status_keys_from_yaml_compare_as_strings() -> None:
    old = {"paths": {"/a": {"get": {"responses": {200: {"content": {"application/json": {"schema": {"type": "object"}}}}}}}}}
    new = {"paths": {"/a": {"get": _op("object")}}}
    assert detect_breaking_changes(new, old) == []


paths = st.lists(st.from_regex(r"/[a-z]{1,6}", fullmatch=True), min_size=1, max_size=8, unique=True)


@given(all_paths=paths, data=st.data())
def test_one_entry_per_removed_path(all_paths: list[str], data: st.DataObject) -> None:
    removed = data.draw(st.lists(st.sampled_from(all_paths), unique=True))
    old = {"paths": {p: {"get": _op(), "put": _op()} for p in all_paths}}
    new = {"paths": {p: {"get": _op(), "put": _op()} for p in all_paths if p not in removed}}
    changes = detect_breaking_changes(new, old)
    assert sorted(change.path for change in changes) == sorted(removed)
    assert all(change.kind == REMOVED and change.method is None for change in changes)


def test_unreadable_compare_target_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ScriptError) as err:
        load_prior_contract(tmp_path / "missing.yaml")
    assert err.value.code == ERR_CONFIG
    assert err.value.kind == "compare_target_unreadable"

    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    with pytest.raises(ScriptError):
        load_prior_contract(bad)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just text\n", encoding="utf-8")
    with pytest.raises(ScriptError):
        load_prior_contract(scalar)
