from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from contractctl.errors import ScriptError
from contractctl.exit_codes import ERR_CONFIG
from contractctl.manifest import load_manifest, parse_manifest, validate_manifest_structure

from helpers import sample_manifest


def test_sample_manifest_is_valid() -> None:
    assert validate_manifest_structure(sample_manifest()) == []


def test_parse_manifest_builds_typed_endpoints() -> None:
    manifest = parse_manifest(yaml.safe_dump(sample_manifest()))
    assert manifest.version == "1.2.0"
    assert manifest.scopes == ("GOV", "SEC", "OPS")
    assert manifest.base_path == "/api/v1"
    assert [ep.label for ep in manifest.endpoints] == [
        "GET /rules/grep",
        "GET /sessions/:id",
        "PUT /cache",
        "GET /health",
    ]
    grep, sessions, cache, health = manifest.endpoints
    assert grep.tags == ("GOV", "GREP")
    assert sessions.source_hint == ("[SEC-AUTH-*]",)
    assert cache.source_hint == "OPS-CACHE"
    assert cache.extensions == {"x-cache": True}
    assert health.source_hint is None


def test_all_violations_are_reported_in_order() -> None:
    data = sample_manifest()
    del data["version"]
    data["rules"]["header"]["schema"]["scope"] = "GOV"
    del data["rules"]["header"]["grep"]
    data["rules"]["api"]["endpoints"] = [{"path": "/a"}, "oops"]
    del data["rules"]["api"]["openapi"]["info"]["title"]
    assert validate_manifest_structure(data) == [
        "Missing required field: version",
        "rules.header.schema.scope must be a list",
        "Missing required field: rules.header.grep.patterns",
        "Endpoint 0: missing required field 'method'",
        "Endpoint 0: missing required field 'summary'",
        "Endpoint 1: must be a mapping",
        "Missing required field: rules.api.openapi.info.title",
    ]


def test_missing_sections_are_named() -> None:
    assert validate_manifest_structure({"version": "1"}) == [
        "Missing required field: rules.header.schema.scope",
        "Missing required field: rules.header.grep.patterns",
        "Missing required field: rules.api.endpoints",
        "Missing required field: rules.api.openapi.info.title",
    ]


def test_non_mapping_root_is_rejected() -> None:
    assert validate_manifest_structure(["a"]) == ["manifest root must be a mapping"]


def test_invalid_manifest_raises_config_error_with_details() -> None:
    with pytest.raises(ScriptError) as err:
        parse_manifest("version: 1\n", "manifest.yaml")
    assert err.value.code == ERR_CONFIG
    assert err.value.kind == "manifest_invalid"
    assert "Missing required field: rules.api.endpoints" in err.value.details


def test_malformed_yaml_is_manifest_invalid() -> None:
    with pytest.raises(ScriptError) as err:
        parse_manifest("version: [unclosed\n")
    assert err.value.kind == "manifest_invalid"
    assert err.value.details


def test_unreadable_manifest(tmp_path: Path) -> None:
    with pytest.raises(ScriptError) as err:
        load_manifest(tmp_path / "missing.yaml")
    assert err.value.code == ERR_CONFIG
    assert err.value.kind == "manifest_unreadable"


def test_unsupported_method_is_reported() -> None:
    data = sample_manifest()
    data["rules"]["api"]["endpoints"].append({"path": "/x", "method": "FETCH", "summary": "x"})
    assert validate_manifest_structure(data) == ["Endpoint 4: unsupported method 'FETCH'"]


def test_endpoint_field_types_are_reported() -> None:
    data = sample_manifest()
    data["rules"]["api"]["endpoints"] = [
        {
            "path": "/a",
            "method": "get",
            "summary": "a",
            "tags": "GOV",
            "parameters": {"name": "q"},
            "responses": [{"200": {}}],
            "requestBody": "Session",
            "x-source": 7,
        }
    ]
    assert validate_manifest_structure(data) == [
        "Endpoint 0: 'tags' must be a list",
        "Endpoint 0: 'parameters' must be a list",
        "Endpoint 0: 'responses' must be a mapping",
        "Endpoint 0: 'requestBody' must be a mapping",
        "Endpoint 0: 'x-source' must be a list or a string",
    ]


def test_list_responses_raise_config_error() -> None:
    data = sample_manifest()
    data["rules"]["api"]["endpoints"][0]["responses"] = [{"200": {}}]
    with pytest.raises(ScriptError) as err:
        parse_manifest(yaml.safe_dump(data))
    assert err.value.code == ERR_CONFIG
    assert err.value.details == ["Endpoint 0: 'responses' must be a mapping"]
