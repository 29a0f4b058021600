from __future__ import annotations

import pytest

from contractctl.contracts import load_catalog, schema_path_for, validate
from contractctl.errors import ScriptError
from contractctl.exit_codes import ERR_VALIDATION


def test_all_catalog_schemas_have_files() -> None:
    catalog = load_catalog()
    assert set(catalog) == {"contractctl.audit-report.v1", "contractctl.contract.v1"}
    for name in catalog:
        assert schema_path_for(name).is_file()


def test_contract_operations_need_provenance() -> None:
    contract = {
        "openapi": "3.1.0",
        "info": {"title": "T", "version": "1"},
        "tags": [],
        "components": {"schemas": {}},
        "paths": {"/a": {"get": {"responses": {}}}},
    }
    with pytest.raises(ScriptError) as err:
        validate("contractctl.contract.v1", contract)
    assert err.value.code == ERR_VALIDATION
    assert "'x-source' is a required property" in err.value.message
    contract["paths"]["/a"]["get"]["x-source"] = []
    validate("contractctl.contract.v1", contract)


def test_unknown_schema_name() -> None:
    with pytest.raises(ScriptError):
        validate("contractctl.nope.v1", {})
