"""Tests for the python-irodsclient adapter, with the SDK session mocked."""

from __future__ import annotations

from unittest.mock import MagicMock

import irods.keywords as kw
import pytest
from irods.exception import CAT_NO_ACCESS_PERMISSION, CAT_NO_ROWS_FOUND
from irods.meta import iRODSMeta
from irods.models import Collection, DataObject

from adapters.irods_client import COLUMN_MAP, IRODSCatalogSession
from core.domain.models import (
    ACLEntry,
    AVUDescriptor,
    CatalogColumn,
    CatalogKind,
    CatalogPath,
    LocalKind,
    LocalPath,
    PermissionLevel,
    TargetClass,
)
from core.errors import CatalogEmptyError, CollaboratorFailure
from core.services.avu_compiler import compile_query

OBJECT = CatalogPath(path="/z/home/u/f.txt", kind=CatalogKind.DATA_OBJECT)
COLLECTION = CatalogPath(path="/z/home/u", kind=CatalogKind.COLLECTION)


@pytest.fixture
def sdk():
    return MagicMock(name="iRODSSession")


@pytest.fixture
def catalog(sdk):
    return IRODSCatalogSession(sdk, zone="homeZone")


class TestTransfers:
    def test_upload_file_onto_collection(self, catalog, sdk):
        local = LocalPath(path="/tmp/f.txt", kind=LocalKind.FILE)
        result = catalog.upload(local, COLLECTION, checksum=True)

        sdk.data_objects.put.assert_called_once_with("/tmp/f.txt", "/z/home/u/f.txt", **{kw.REG_CHKSUM_KW: ""})
        assert result.remote_path == "/z/home/u/f.txt"

    def test_upload_directory_tree(self, catalog, sdk, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "sub" / "b.txt").write_text("b")
        sdk.collections.exists.return_value = False

        result = catalog.upload(LocalPath(path=str(tmp_path), kind=LocalKind.DIRECTORY), COLLECTION)

        created = [c.args[0] for c in sdk.collections.create.call_args_list]
        assert created == ["/z/home/u", "/z/home/u/sub"]
        targets = sorted(c.args[1] for c in sdk.data_objects.put.call_args_list)
        assert targets == ["/z/home/u/a.txt", "/z/home/u/sub/b.txt"]
        assert result.items == 2

    @pytest.mark.parametrize("kind", ["missing", "regular_file"])
    def test_upload_unreadable_directory_fails(self, catalog, sdk, tmp_path, kind):
        source = tmp_path / "source"
        if kind == "regular_file":
            source.write_text("not a directory")

        with pytest.raises(CollaboratorFailure):
            catalog.upload(LocalPath(path=str(source), kind=LocalKind.DIRECTORY), COLLECTION)
        sdk.collections.create.assert_not_called()
        sdk.data_objects.put.assert_not_called()

    def test_download_object_into_directory(self, catalog, sdk, tmp_path):
        local = LocalPath(path=str(tmp_path), kind=LocalKind.DIRECTORY)
        result = catalog.download(OBJECT, local)

        sdk.data_objects.get.assert_called_once_with(
            "/z/home/u/f.txt", str(tmp_path / "f.txt"), **{kw.FORCE_FLAG_KW: ""}
        )
        assert result.local_path == str(tmp_path / "f.txt")

    def test_local_io_error_is_collaborator_failure(self, catalog, sdk):
        sdk.data_objects.put.side_effect = FileNotFoundError("no such file")
        with pytest.raises(CollaboratorFailure):
            catalog.upload(LocalPath(path="/tmp/missing", kind=LocalKind.FILE), OBJECT)


class TestMetadataAndAccess:
    def test_add_metadata_on_data_object(self, catalog, sdk):
        catalog.add_metadata(OBJECT, "project", "alpha", "")

        model, path, meta = sdk.metadata.add.call_args.args
        assert model is DataObject
        assert path == OBJECT.path
        assert (meta.name, meta.value, meta.units) == ("project", "alpha", None)

    def test_delete_by_name_on_collection(self, catalog, sdk):
        keep = iRODSMeta("other", "1")
        first = iRODSMeta("project", "alpha")
        second = iRODSMeta("project", "beta", "u")
        sdk.metadata.get.return_value = [first, keep, second]

        catalog.delete_metadata_by_name(COLLECTION, "project")

        removed = [c.args for c in sdk.metadata.remove.call_args_list]
        assert removed == [(Collection, COLLECTION.path, first), (Collection, COLLECTION.path, second)]

    def test_change_access_defaults_zone(self, catalog, sdk):
        catalog.change_access(COLLECTION, ACLEntry(owner="bob", level=PermissionLevel.WRITE), recursive=True)

        acl = sdk.acls.set.call_args.args[0]
        assert acl.path == COLLECTION.path
        assert acl.user_name == "bob"
        assert acl.user_zone == "homeZone"
        assert sdk.acls.set.call_args.kwargs == {"recursive": True}

    def test_sdk_error_keeps_code(self, catalog, sdk):
        sdk.metadata.add.side_effect = CAT_NO_ACCESS_PERMISSION("denied")
        with pytest.raises(CollaboratorFailure) as exc_info:
            catalog.add_metadata(OBJECT, "project", "alpha")
        assert exc_info.value.code == CAT_NO_ACCESS_PERMISSION.code


class TestQuery:
    def test_rows_mapped_to_catalog_columns(self, catalog, sdk):
        query = sdk.query.return_value
        query.filter.return_value = query
        query.add_keyword.return_value = query
        query.__iter__.return_value = iter(
            [{COLUMN_MAP[CatalogColumn.COLL_NAME]: "/z/c", COLUMN_MAP[CatalogColumn.DATA_NAME]: "f"}]
        )
        request = compile_query(
            [AVUDescriptor(attribute="project", value="al%", operator="like")],
            TargetClass.DATA_OBJECT,
            "otherZone",
        )

        rows = catalog.run_query(request)

        assert rows == [{CatalogColumn.COLL_NAME: "/z/c", CatalogColumn.DATA_NAME: "f"}]
        sdk.query.assert_called_once_with(
            COLUMN_MAP[CatalogColumn.COLL_NAME], COLUMN_MAP[CatalogColumn.DATA_NAME]
        )
        criteria = query.filter.call_args.args
        assert [c.op for c in criteria] == ["=", "like"]
        query.add_keyword.assert_called_once_with(kw.ZONE_KW, "otherZone")

    def test_no_rows_error_becomes_catalog_empty(self, catalog, sdk):
        query = sdk.query.return_value
        query.filter.return_value = query
        query.add_keyword.return_value = query
        query.__iter__.side_effect = CAT_NO_ROWS_FOUND()

        with pytest.raises(CatalogEmptyError):
            catalog.run_query(compile_query([], TargetClass.COLLECTION, "z"))


def test_exclusive_is_reentrant(catalog, sdk):
    with catalog.exclusive():
        catalog.add_metadata(OBJECT, "a", "1")
    assert sdk.metadata.add.called


def test_close_cleans_up(catalog, sdk):
    catalog.close()
    sdk.cleanup.assert_called_once_with()
