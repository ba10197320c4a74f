"""Tests for filename sanitization and destination confinement."""

from __future__ import annotations

from pathlib import Path

import pytest

from slack_file_saver.storage import PLACEHOLDER_NAME, destination_path, sanitize_filename


class TestSanitizeFilename:

    def test_plain_name_unchanged(self):
        assert sanitize_filename("report.pdf") == "report.pdf"

    def test_forward_slashes_replaced(self):
        assert sanitize_filename("a/b/c.txt") == "a_b_c.txt"

    def test_backslashes_replaced(self):
        assert sanitize_filename("..\\..\\win.ini") == ".._.._win.ini"

    def test_nul_replaced(self):
        assert "\x00" not in sanitize_filename("evil\x00.txt")

    def test_traversal_name(self):
        safe = sanitize_filename("../../etc/passwd")
        assert safe == ".._.._etc_passwd"
        assert "/" not in safe

    @pytest.mark.parametrize("name", ["", ".", ".."])
    def test_directory_names_become_placeholder(self, name):
        assert sanitize_filename(name) == PLACEHOLDER_NAME

    def test_hidden_file_kept(self):
        assert sanitize_filename(".env") == ".env"


class TestDestinationPath:

    @pytest.mark.parametrize("name", [
        "report.pdf",
        "../../etc/passwd",
        "/etc/shadow",
        "nested/dir/file.bin",
        "..",
        "",
        "\\\\server\\share\\x",
    ])
    def test_always_direct_child_of_root(self, tmp_path, name):
        path = destination_path(tmp_path, name)
        assert path.parent == tmp_path
        assert path.resolve().parent == tmp_path.resolve()

    def test_relative_root(self):
        path = destination_path(Path("./uploads"), "report.pdf")
        assert path == Path("uploads") / "report.pdf"

    def test_same_name_same_path(self, tmp_path):
        assert destination_path(tmp_path, "a/b") == destination_path(tmp_path, "a/b")
