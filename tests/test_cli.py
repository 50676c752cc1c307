"""CLI tests with Typer's CliRunner and a fake catalog client."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import cli.main as cli_main
from core.config import CatalogAccount
from core.domain.models import CatalogColumn, TargetClass
from core.errors import CollaboratorFailure

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_catalog(monkeypatch, client):
    account = CatalogAccount(
        environment_file=Path("/nonexistent/irods_environment.json"),
        authentication_file=Path("/nonexistent/irodsA"),
        environment={"irods_zone_name": "testZone"},
    )
    monkeypatch.setattr(cli_main, "load_account", lambda settings, logger: account)
    monkeypatch.setattr(cli_main, "IRODSCatalogClient", lambda logger: client)
    return client


def invoke(*args: str, document: object = None):
    text = document if isinstance(document, str) else json.dumps(document)
    return runner.invoke(cli_main.app, ["--log-level", "error", *args], input=text)


def test_version():
    result = runner.invoke(cli_main.app, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_get_success(session):
    result = invoke("get", document={"coll": "/z/home/u", "obj": "f.txt", "dir": "/tmp", "file": "f.txt"})
    assert result.exit_code == 0
    assert session.names() == ["download"]


def test_get_collection_into_file_fails(session):
    result = invoke("get", document={"coll": "/z/home/u", "dir": "/tmp", "file": "f.txt"})
    assert result.exit_code == 1
    assert session.calls == []


def test_put_checksum_flag(session):
    result = invoke("put", "--checksum", document={"coll": "/z", "dir": "/tmp", "file": "f"})
    assert result.exit_code == 0
    assert session.calls[0][3] is True


def test_chmod_recurse(session):
    doc = {"coll": "/z/home/u", "access": [{"owner": "bob", "level": "write"}]}
    result = invoke("chmod", "--recurse", document=doc)
    assert result.exit_code == 0
    assert session.calls == [("change_access", "/z/home/u", "bob", "write", True, True)]


def test_metamod_invalid_operation_rejected_before_reading_stdin(session):
    result = invoke("metamod", "--operation", "delete", document="not json at all")
    assert result.exit_code == 1
    assert session.calls == []


def test_metamod_operation_required():
    result = invoke("metamod", document={"coll": "/z", "avus": [{"a": "x"}]})
    assert result.exit_code != 0


def test_metamod_remove(session):
    result = invoke("metamod", "--operation", "rem", document={"coll": "/z", "avus": [{"a": "x"}]})
    assert result.exit_code == 0
    assert session.names() == ["delete_metadata_by_name"]


def test_metaquery_prints_json_array(session):
    session.rows[TargetClass.COLLECTION] = [{CatalogColumn.COLL_NAME: "/testZone/home/c"}]
    result = invoke("metaquery", "--zone", "testZone", document={"avus": [{"a": "project", "v": "alpha"}]})

    assert result.exit_code == 0
    assert json.loads(result.stdout.strip().splitlines()[-1]) == [{"collection": "/testZone/home/c"}]
    assert [q.zone for q in session.queries] == ["testZone", "testZone"]


def test_metaquery_empty_result_is_array(session):
    result = invoke("metaquery", "--object", document={"avus": [{"a": "project", "v": "none"}]})
    assert result.exit_code == 0
    assert json.loads(result.stdout.strip().splitlines()[-1]) == []
    assert session.queries[0].zone == "testZone"


def test_metaquery_failure_exit_code(session):
    session.rows[TargetClass.COLLECTION] = CollaboratorFailure("server down", code=-4000)
    result = invoke("metaquery", document={"avus": []})
    assert result.exit_code == 1


def test_malformed_json(session):
    result = invoke("get", document='{"coll": ')
    assert result.exit_code == 1
    assert session.calls == []


def test_missing_key(session):
    result = invoke("put", document={"dir": "/tmp"})
    assert result.exit_code == 1
