"""Tests for removing subscriptions from the configuration document."""

import os

import pytest
import yaml

from subcheck_cli.lifecycle.exceptions import MalformedSourceListError, SourceListEditError
from subcheck_cli.lifecycle.source_list_editor import SourceListEditor


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "check-interval: 30\n"
        "sub-urls:\n"
        "  - https://a.example/sub\n"
        "  - https://b.example/sub\n"
        "  - 42\n"
        "  - https://c.example/sub\n"
        "sub-urls-fail-remove: 3\n"
    )
    return path


class TestRemoveSources:
    """Tests for SourceListEditor.remove_sources."""

    def test_removes_matching_entries(self, config_file):
        editor = SourceListEditor()

        removed = editor.remove_sources(config_file, ["https://b.example/sub"])

        assert removed == 1
        document = yaml.safe_load(config_file.read_text())
        assert document["sub-urls"] == ["https://a.example/sub", 42, "https://c.example/sub"]

    def test_other_keys_and_order_preserved(self, config_file):
        SourceListEditor().remove_sources(config_file, ["https://a.example/sub"])

        document = yaml.safe_load(config_file.read_text())
        assert list(document) == ["check-interval", "sub-urls", "sub-urls-fail-remove"]
        assert document["check-interval"] == 30
        assert document["sub-urls-fail-remove"] == 3

    def test_no_match_leaves_file_untouched(self, config_file):
        before = config_file.read_bytes()
        os.utime(config_file, (1_000_000, 1_000_000))

        removed = SourceListEditor().remove_sources(config_file, ["https://zzz.example/sub"])

        assert removed == 0
        assert config_file.read_bytes() == before
        assert config_file.stat().st_mtime == 1_000_000

    def test_second_call_is_noop(self, config_file):
        editor = SourceListEditor()
        ids = ["https://a.example/sub", "https://c.example/sub"]

        assert editor.remove_sources(config_file, ids) == 2
        content = config_file.read_bytes()
        assert editor.remove_sources(config_file, ids) == 0
        assert config_file.read_bytes() == content

    def test_match_is_exact(self, config_file):
        removed = SourceListEditor().remove_sources(config_file, ["HTTPS://A.EXAMPLE/SUB"])

        assert removed == 0

    def test_empty_id_set(self, config_file):
        assert SourceListEditor().remove_sources(config_file, []) == 0

    def test_missing_list_key(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("check-interval: 30\n")

        assert SourceListEditor().remove_sources(path, ["x"]) == 0

    def test_non_list_field_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sub-urls: https://a.example/sub\n")

        with pytest.raises(MalformedSourceListError):
            SourceListEditor().remove_sources(path, ["https://a.example/sub"])

    def test_unparsable_document_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sub-urls: [unclosed\n")

        with pytest.raises(SourceListEditError):
            SourceListEditor().remove_sources(path, ["x"])

    def test_custom_list_key(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sources:\n  - x\n  - y\n")
        editor = SourceListEditor(list_key="sources")

        assert editor.remove_sources(path, ["x"]) == 1
        assert yaml.safe_load(path.read_text()) == {"sources": ["y"]}
