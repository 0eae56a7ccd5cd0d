"""Tests for the Twake Drive dropdown callbacks."""
import json
from unittest.mock import patch

import pytest

from nodepacks.twake_drive import load_options
from src.node_sdk.basenode import NodeOperationError
from tests.helpers import INSTANCE_URL, ROOT, entry, listing, make_response, sent

ROOT_OPTION = {"name": f"🏠 Root · {ROOT}", "value": ROOT}


def _doc(folder_id, name, parent):
    return make_response(payload={"data": entry(folder_id, name, "directory", dir_id=parent)})


class TestFolderBreadcrumb:
    """Tests for the folder pickers."""

    @patch("requests.request")
    def test_root(self, mock_request, make_node):
        mock_request.return_value = listing([
            entry("d2", "beta", "directory"),
            entry("f1", "notes.txt"),
            entry("d1", "Alpha", "directory"),
        ])

        options = load_options.load_folders_by_parent(make_node())

        assert options == [
            ROOT_OPTION,
            {"name": "↳ 📁 Alpha · d1", "value": "d1"},
            {"name": "↳ 📁 beta · d2", "value": "d2"},
        ]

    @patch("requests.request")
    def test_nested_folder(self, mock_request, make_node):
        mock_request.side_effect = [
            _doc("d2", "2024", "d1"),
            _doc("d1", "Projects", ROOT),
            listing([entry("d3", "Invoices", "directory")], dir_id="d2"),
        ]

        options = load_options.load_folders_by_parent(make_node({"parentDirIdDest": "d2"}))

        assert options == [
            ROOT_OPTION,
            {"name": "⬆︎ Projects · d1", "value": "d1"},
            {"name": "📍 2024 · d2", "value": "d2"},
            {"name": "↳ 📁 Invoices · d3", "value": "d3"},
        ]
        assert sent(mock_request, 2)["url"] == f"{INSTANCE_URL}/files/d2"

    @patch("requests.request")
    def test_source_picker_shows_direct_parent_only(self, mock_request, make_node):
        mock_request.side_effect = [
            _doc("d3", "Invoices", "d2"),
            _doc("d2", "2024", "d1"),
            _doc("d1", "Projects", ROOT),
            listing([], dir_id="d3"),
        ]

        options = load_options.load_folders_by_parent_source(make_node({"parentDirIdFile": "d3"}))

        assert [option["value"] for option in options] == [ROOT, "d2", "d3"]

    @patch("requests.request")
    def test_dest_picker_reads_dest_parameter(self, mock_request, make_node):
        mock_request.return_value = listing([])

        options = load_options.load_folders_by_parent_dest(make_node({"parentDirIdFile": "ignored"}))

        assert options == [ROOT_OPTION]
        assert sent(mock_request)["url"] == f"{INSTANCE_URL}/files/{ROOT}"

    @patch("requests.request")
    def test_self_parent_stops_walk(self, mock_request, make_node):
        mock_request.side_effect = [_doc("d1", "Loop", "d1"), listing([], dir_id="d1")]

        options = load_options.load_folders_by_parent(make_node({"parentDirId": "d1"}))

        assert options == [ROOT_OPTION, {"name": "📍 Loop · d1", "value": "d1"}]

    @patch("requests.request")
    def test_error_wrapped(self, mock_request, make_node):
        mock_request.return_value = make_response(
            404, payload={"errors": [{"detail": "not found"}]}, reason="Not Found"
        )

        with pytest.raises(NodeOperationError) as exc_info:
            load_options.load_folders_by_parent(make_node({"parentDirIdFile": "gone"}))

        assert str(exc_info.value) == (
            'loadFoldersByParent: GET /files/gone failed (HTTP 404) · {"errors": [{"detail": "not found"}]}'
        )


class TestFilePickers:
    """Tests for file and child pickers."""

    @patch("requests.request")
    def test_files_by_parent(self, mock_request, make_node):
        mock_request.return_value = listing([
            entry("f2", "b.txt"),
            entry("d1", "Docs", "directory"),
            entry("f1", "A.txt"),
        ], dir_id="d9")

        options = load_options.load_files_by_parent(make_node({"parentDirIdFile": "d9"}))

        assert options == [
            {"name": "📄 A.txt · f1", "value": "f1"},
            {"name": "📄 b.txt · f2", "value": "f2"},
        ]

    @patch("requests.request")
    def test_children_by_type(self, mock_request, make_node):
        mock_request.return_value = listing([entry("f1", "a.txt"), entry("d1", "Docs", "directory")])

        folders = load_options.load_children_by_parent_and_type(make_node())
        files = load_options.load_children_by_parent_and_type(make_node({"targetType": "file"}))

        assert folders == [{"name": "📁 Docs · d1", "value": "d1"}]
        assert files == [{"name": "📄 a.txt · f1", "value": "f1"}]


class TestSharePickers:
    """Tests for the permission and label pickers."""

    @patch("requests.request")
    def test_share_permissions_paginated(self, mock_request, make_node):
        next_link = "/permissions/doctype/io.cozy.files/shared-by-link?page[cursor]=p2"
        mock_request.side_effect = [
            make_response(payload={
                "data": [
                    {"id": "perm-1", "attributes": {"codes": {"bob": "t2"}, "shortcodes": {"alice": "s1"}}},
                    {"id": "perm-2", "attributes": {}},
                ],
                "links": {"next": next_link},
            }),
            make_response(payload={
                "data": [{"id": "perm-1", "attributes": {}}, {"id": "", "attributes": {}}],
                "links": {},
            }),
        ]

        options = load_options.load_share_permissions(make_node())

        assert sent(mock_request, 0)["url"] == f"{INSTANCE_URL}/permissions/doctype/io.cozy.files/shared-by-link"
        assert sent(mock_request, 1)["url"] == f"{INSTANCE_URL}{next_link}"
        assert [option["name"] for option in options] == ["alice, bob · perm-1", "perm-2"]
        assert json.loads(options[0]["value"]) == {
            "id": "perm-1",
            "codes": {"bob": "t2"},
            "shortcodes": {"alice": "s1"},
        }
        assert " " not in options[0]["value"]

    @patch("requests.request")
    def test_share_permissions_stop_on_repeated_link(self, mock_request, make_node):
        echoed = {
            "data": [{"id": "perm-1", "attributes": {}}],
            "links": {"next": "/permissions/doctype/io.cozy.files/shared-by-link?page[cursor]=p2"},
        }
        mock_request.return_value = make_response(payload=echoed)

        options = load_options.load_share_permissions(make_node())

        assert mock_request.call_count == 2
        assert [option["name"] for option in options] == ["perm-1"]

    def test_share_labels_from_dropdown_value(self, make_node):
        value = json.dumps({"id": "perm-1", "codes": {"b": "t"}, "shortcodes": {"a": "s"}})

        options = load_options.load_share_labels(make_node({"permissionsId": value}))

        assert options == [{"name": "a", "value": "a"}, {"name": "b", "value": "b"}]

    @patch("requests.request")
    def test_share_labels_fetched_for_bare_id(self, mock_request, make_node):
        mock_request.return_value = make_response(payload={
            "data": {"id": "perm-1", "attributes": {"codes": {"link": "t"}, "shortcodes": {"link": "s"}}}
        })

        options = load_options.load_share_labels(make_node({"permissionsId": "perm-1"}))

        assert sent(mock_request)["url"] == f"{INSTANCE_URL}/permissions/perm-1"
        assert options == [{"name": "link", "value": "link"}]

    def test_share_labels_empty_without_permission(self, make_node):
        assert load_options.load_share_labels(make_node()) == []


class TestNodeLoadOptions:
    """Tests for dispatching dropdown callbacks through the node."""

    @patch("requests.request")
    def test_dispatch(self, mock_request, make_node):
        mock_request.return_value = listing([])
        assert make_node().get_load_options("loadFoldersByParentDest") == [ROOT_OPTION]

    def test_unknown_method(self, make_node):
        with pytest.raises(NodeOperationError, match="Unknown load options method 'nope'"):
            make_node().get_load_options("nope")
