"""
Unit tests for the find-and-replace tree walker.

Tests traversal order, recursion, filtering, renaming while walking,
content rewriting and error propagation of FindReplaceWalker.
"""

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

import pytest

from findreplace.models.request import TraversalRequest
from findreplace.tools.errors import ContentReadError, EnumerationError, RenameCollisionError
from findreplace.tools.walker import FindReplaceWalker, list_children, process_files


class TestFindReplaceWalker:
    """Test cases for the FindReplaceWalker class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir)

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write(self, relative_path, content):
        full_path = self.test_root / relative_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)
        return full_path

    def _request(self, **options):
        options.setdefault('base_dir', self.test_root)
        return TraversalRequest(**options)

    def _tree(self):
        """Relative paths of every entry under the test root."""
        return sorted(
            str(p.relative_to(self.test_root)).replace(os.sep, '/')
            for p in self.test_root.rglob('*')
        )

    def test_replace_file_contents(self):
        """A file's matching content is replaced."""
        target = self._write("foo.txt", "hello foo")

        process_files(self._request(find_regex="foo", replace_value="bar",
                                    process_file_contents=True))

        assert target.read_text() == "hello bar"
        assert self._tree() == ["foo.txt"]

    def test_directory_renamed_before_descent(self):
        """A renamed directory's children are found and renamed under the new name."""
        self._write("oldname/oldname_file.txt", "payload")

        process_files(self._request(find_regex="old", replace_value="new", recursive=True,
                                    process_directory_names=True, process_filenames=True))

        assert self._tree() == ["newname", "newname/newname_file.txt"]
        assert (self.test_root / "newname" / "newname_file.txt").read_text() == "payload"

    def test_excluded_file_untouched(self):
        """An excluded file keeps its name and content."""
        target = self._write("data.bak", "foo")

        process_files(self._request(find_regex="foo|data", replace_value="x",
                                    exclusions=[r"\.bak$"], process_file_contents=True,
                                    process_filenames=True))

        assert target.read_text() == "foo"
        assert self._tree() == ["data.bak"]

    def test_file_masks_select_files(self):
        """Only files ending with a mask are modified."""
        java = self._write("A.java", "foo")
        text = self._write("B.txt", "foo")

        process_files(self._request(find_regex="foo", replace_value="bar",
                                    file_masks=[".java"], process_file_contents=True))

        assert java.read_text() == "bar"
        assert text.read_text() == "foo"

    def test_replace_first_occurrence(self):
        """Only the first occurrence is replaced when replace_all is off."""
        target = self._write("f.txt", "foo foo foo")

        process_files(self._request(find_regex="foo", replace_value="X", replace_all=False,
                                    process_file_contents=True))

        assert target.read_text() == "X foo foo"

    def test_non_recursive_touches_only_children(self):
        """Without recursion grandchildren are never touched."""
        top = self._write("foo.txt", "foo")
        nested = self._write("foo_dir/foo.txt", "foo")

        process_files(self._request(find_regex="foo", replace_value="bar",
                                    process_file_contents=True, process_filenames=True,
                                    process_directory_names=True))

        assert self._tree() == ["bar.txt", "bar_dir", "bar_dir/foo.txt"]
        assert (self.test_root / "bar.txt").read_text() == "bar"
        assert (self.test_root / "bar_dir" / "foo.txt").read_text() == "foo"
        assert not top.exists()
        assert not nested.exists()

    def test_recursive_processes_grandchildren(self):
        """With recursion nested files are processed."""
        nested = self._write("a/b/c.txt", "foo")

        process_files(self._request(find_regex="foo", replace_value="bar", recursive=True,
                                    process_file_contents=True))

        assert nested.read_text() == "bar"

    def test_excluded_directory_not_renamed_but_descended(self):
        """An excluded directory keeps its name; its children are still visited."""
        self._write("old_keep/old.txt", "old")

        process_files(self._request(find_regex="old", replace_value="new", recursive=True,
                                    exclusions=["keep"], process_directory_names=True,
                                    process_filenames=True, process_file_contents=True))

        assert self._tree() == ["old_keep", "old_keep/new.txt"]
        assert (self.test_root / "old_keep" / "new.txt").read_text() == "new"

    def test_masks_do_not_apply_to_directories(self):
        """Directory renames ignore the file masks."""
        self._write("old_dir/old.txt", "x")

        process_files(self._request(find_regex="old", replace_value="new", recursive=True,
                                    file_masks=[".java"], process_directory_names=True,
                                    process_filenames=True))

        assert self._tree() == ["new_dir", "new_dir/old.txt"]

    def test_content_then_name(self):
        """Content is rewritten before the file itself is renamed."""
        self._write("foo.txt", "foo")

        process_files(self._request(find_regex="foo", replace_value="bar",
                                    process_file_contents=True, process_filenames=True))

        assert self._tree() == ["bar.txt"]
        assert (self.test_root / "bar.txt").read_text() == "bar"

    def test_preorder_rename_order(self, caplog):
        """Children of a directory are handled before its later siblings."""
        caplog.set_level(logging.INFO)
        self._write("a/a1.txt", "")
        self._write("b.txt", "")

        process_files(self._request(find_regex="^", replace_value="x_", recursive=True,
                                    process_directory_names=True, process_filenames=True))

        messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Renaming")]
        assert messages == [
            "Renaming a to x_a",
            "Renaming a1.txt to x_a1.txt",
            "Renaming b.txt to x_b.txt"
        ]
        assert self._tree() == ["x_a", "x_a/x_a1.txt", "x_b.txt"]

    def test_second_run_is_idempotent(self):
        """Running the same request twice changes nothing the second time."""
        target = self._write("docs/readme.txt", "foo and foo")
        request = self._request(find_regex="foo", replace_value="bar", recursive=True,
                                process_file_contents=True)

        first = process_files(request)
        second = process_files(request)

        assert target.read_text() == "bar and bar"
        assert first['files_rewritten'] == 1
        assert second['files_rewritten'] == 0

    def test_replacement_that_rematches_is_not_idempotent(self):
        """A replacement that produces new matches keeps changing the file."""
        target = self._write("f.txt", "a")
        request = self._request(find_regex="a", replace_value="aa", process_file_contents=True)

        process_files(request)
        process_files(request)

        assert target.read_text() == "aaaa"

    @pytest.mark.skipif(os.name != 'posix', reason="requires POSIX permissions")
    def test_non_matching_file_is_byte_identical(self):
        """A file without matches keeps its bytes and permission bits."""
        original = b"no match here\r\n\x00binary-ish"
        target = self.test_root / "keep.bin"
        target.write_bytes(original)
        os.chmod(target, 0o751)

        process_files(self._request(find_regex="foo", replace_value="bar",
                                    process_file_contents=True, encoding="latin-1"))

        assert target.read_bytes() == original
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o751

    @pytest.mark.skipif(not hasattr(os, 'symlink'), reason="symlinks not supported")
    def test_broken_symlink_skipped(self):
        """Entries that are neither files nor directories are skipped."""
        os.symlink(self.test_root / "missing_foo", self.test_root / "foo_link")

        stats = process_files(self._request(find_regex="foo", replace_value="bar",
                                            process_filenames=True, process_file_contents=True))

        assert os.path.islink(self.test_root / "foo_link")
        assert stats['entries_skipped'] == 1

    def test_missing_root_raises(self):
        """A root that does not exist cannot be listed."""
        with pytest.raises(EnumerationError, match="Unable to list"):
            process_files(self._request(base_dir=self.test_root / "missing", find_regex="foo"))

    def test_file_root_raises(self):
        """A root that is a file cannot be listed."""
        target = self._write("plain.txt", "foo")

        with pytest.raises(EnumerationError):
            process_files(self._request(base_dir=target, find_regex="foo"))

    def test_collision_aborts_run(self):
        """A rename onto an existing name aborts the run and keeps both files."""
        self._write("bar.txt", "bar")
        self._write("foo.txt", "foo")
        later = self._write("zzz_foo.txt", "foo")

        with pytest.raises(RenameCollisionError):
            process_files(self._request(find_regex="foo", replace_value="bar",
                                        process_filenames=True))

        assert (self.test_root / "bar.txt").read_text() == "bar"
        assert (self.test_root / "foo.txt").read_text() == "foo"
        assert later.exists()

    def test_failure_keeps_earlier_changes(self):
        """Files processed before a failure stay modified."""
        first = self._write("a.txt", "foo")
        self.test_root.joinpath("b.txt").write_bytes(b"\xff foo")
        last = self._write("c.txt", "foo")

        with pytest.raises(ContentReadError):
            process_files(self._request(find_regex="foo", replace_value="bar",
                                        process_file_contents=True))

        assert first.read_text() == "bar"
        assert last.read_text() == "foo"

    def test_skip_leaves_tree_alone(self, caplog):
        """A skipped request does not touch the tree, not even the root."""
        caplog.set_level(logging.INFO)
        target = self._write("foo.txt", "foo")

        stats = process_files(self._request(base_dir=self.test_root / "missing", find_regex="foo",
                                            skip=True, process_file_contents=True))

        assert target.read_text() == "foo"
        assert stats['files_scanned'] == 0
        assert "Skipping find and replace" in caplog.text

    def test_stats(self):
        """Statistics count what the run did."""
        self._write("foo.txt", "foo")
        self._write("skip.bak", "foo")
        self._write("notes.md", "foo")
        self._write("sub/foo.txt", "nothing")

        walker = FindReplaceWalker()
        walker.run(self._request(find_regex="foo", replace_value="bar", recursive=True,
                                 exclusions=[r"\.bak$"], file_masks=[".txt", ".bak"],
                                 process_file_contents=True, process_filenames=True))
        stats = walker.get_stats()

        assert stats['directories_traversed'] == 1
        assert stats['files_scanned'] == 4
        assert stats['files_rewritten'] == 1
        assert stats['entries_renamed'] == 2
        assert stats['entries_excluded'] == 1
        assert stats['files_masked_out'] == 1

        walker.reset_stats()
        assert all(value == 0 for value in walker.get_stats().values())

    def test_stats_cover_only_the_latest_run(self):
        """A reused walker reports counts for its latest run only."""
        self._write("one.txt", "foo")
        walker = FindReplaceWalker()
        request = self._request(find_regex="foo", replace_value="bar", process_file_contents=True)

        walker.run(request)
        walker.run(request)
        stats = walker.get_stats()

        assert stats['files_scanned'] == 1
        assert stats['files_rewritten'] == 0

    def test_custom_logger_receives_renames(self, caplog):
        """Rename messages go to the logger handed to the walker."""
        caplog.set_level(logging.INFO)
        self._write("foo.txt", "")
        reporter = logging.getLogger("build.reporter")

        process_files(self._request(find_regex="foo", replace_value="bar", process_filenames=True),
                      log=reporter)

        renames = [r for r in caplog.records if r.getMessage().startswith("Renaming")]
        assert [r.name for r in renames] == ["build.reporter"]


class TestListChildren:
    """Test cases for list_children."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir)

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_sorted_and_typed(self):
        """Children are listed in name order with their type."""
        (self.test_root / "b").mkdir()
        (self.test_root / "a.txt").write_text("")
        (self.test_root / "c.txt").write_text("")

        children = list_children(self.test_root)

        assert [c.name for c in children] == ["a.txt", "b", "c.txt"]
        assert [c.is_dir for c in children] == [False, True, False]

    def test_empty_directory(self):
        """An empty directory has no children."""
        assert list_children(self.test_root) == []
