# Copyright Red Hat
#
# tests/fsdiff/test_engine.py - Directory diff engine tests.
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import MagicMock, patch
import tempfile
import logging
import json
import os

from imgdiff import SIZE_UNKNOWN
from imgdiff.fsdiff.directory import Directory, get_directory
from imgdiff.fsdiff.engine import (
    DiffEngine,
    DiffType,
    DirDiff,
    DirectoryEntry,
    EntryDiff,
    diff_directory,
    get_added_entries,
    get_deleted_entries,
    get_directory_entries,
    get_modified_entries,
    get_size,
)
from imgdiff.fsdiff.options import DiffOptions

from .._util import make_chain, make_tree, recursion_headroom

ENGINE_LOG = "imgdiff.fsdiff.engine"


class DiffEngineTestBase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root1 = os.path.join(self._tmp.name, "image1")
        self.root2 = os.path.join(self._tmp.name, "image2")
        os.mkdir(self.root1)
        os.mkdir(self.root2)

    def tearDown(self):
        self._tmp.cleanup()

    def snapshots(self, tree1, tree2, deep=True):
        make_tree(self.root1, tree1)
        make_tree(self.root2, tree2)
        return (
            get_directory(self.root1, deep=deep),
            get_directory(self.root2, deep=deep),
        )


class TestDiffDirectory(DiffEngineTestBase):
    def test_directory_scenario(self):
        d1, d2 = self.snapshots(
            {"a": 10, "b": 20, "c.tar": b"1" * 100},
            {"a": 10, "c.tar": b"2" * 100, "d": 30},
        )
        dir_diff, same = diff_directory(d1, d2)

        self.assertEqual(dir_diff.adds, (DirectoryEntry("/d", 30),))
        self.assertEqual(dir_diff.dels, (DirectoryEntry("/b", 20),))
        self.assertEqual(dir_diff.mods, ())
        self.assertFalse(same)

    def test_reflexive(self):
        d1, _ = self.snapshots({"etc": None, "etc/hosts": 12, "bin/sh": 40}, {})
        dir_diff, same = diff_directory(d1, d1)
        self.assertEqual(dir_diff, DirDiff())
        self.assertTrue(same)

    def test_swap_symmetry(self):
        d1, d2 = self.snapshots(
            {"a": 1, "b": 2, "m": b"old"},
            {"b": 2, "c": 3, "m": b"new"},
        )
        forward, _ = diff_directory(d1, d2)
        backward, _ = diff_directory(d2, d1)

        self.assertEqual(
            [e.name for e in forward.adds], [e.name for e in backward.dels]
        )
        self.assertEqual(
            [e.name for e in forward.dels], [e.name for e in backward.adds]
        )
        self.assertEqual(
            [e.name for e in forward.mods], [e.name for e in backward.mods]
        )

    def test_same_size_different_content(self):
        d1, d2 = self.snapshots({"etc/passwd": b"root:x:0"}, {"etc/passwd": b"root:y:0"})
        dir_diff, same = diff_directory(d1, d2)
        self.assertEqual(dir_diff.mods, (EntryDiff("/etc/passwd", 8, 8),))
        self.assertFalse(same)

    def test_size_mismatch_skips_content_read(self):
        d1, d2 = self.snapshots({"f": b"short"}, {"f": b"much longer"})
        with patch("imgdiff.fsdiff.engine._same_content") as same_content:
            dir_diff, _ = diff_directory(d1, d2)
        same_content.assert_not_called()
        self.assertEqual(dir_diff.mods, (EntryDiff("/f", 5, 11),))

    def test_archive_same_size_is_unchanged(self):
        d1, d2 = self.snapshots(
            {"layer.tar.gz": b"a" * 64}, {"layer.tar.gz": b"b" * 64}
        )
        with patch("imgdiff.fsdiff.engine._same_content") as same_content:
            dir_diff, same = diff_directory(d1, d2)
        same_content.assert_not_called()
        self.assertTrue(same)
        self.assertEqual(dir_diff.mods, ())

    def test_archive_size_change_is_modified(self):
        d1, d2 = self.snapshots({"data.tar": 64}, {"data.tar": 128})
        dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual(dir_diff.mods, (EntryDiff("/data.tar", 64, 128),))

    def test_strict_archive_compare(self):
        d1, d2 = self.snapshots({"data.tar": b"a" * 64}, {"data.tar": b"b" * 64})
        options = DiffOptions(strict_archive_compare=True)
        dir_diff, same = diff_directory(d1, d2, options=options)
        self.assertEqual(dir_diff.mods, (EntryDiff("/data.tar", 64, 64),))
        self.assertFalse(same)

    def test_directories_not_modified(self):
        d1, d2 = self.snapshots(
            {"usr": None, "usr/lib": None, "usr/lib/a.so": b"same"},
            {"usr": None, "usr/lib": None, "usr/lib/a.so": b"same", "usr/lib/b": 1},
        )
        dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual(dir_diff.mods, ())
        self.assertEqual([e.name for e in dir_diff.adds], ["/usr/lib/b"])

    def test_stat_failure_omits_entry(self):
        make_tree(self.root1, {"real": b"x"})
        make_tree(self.root2, {"real": b"y"})
        os.symlink(os.path.join(self.root1, "missing"), os.path.join(self.root1, "link"))
        os.symlink(os.path.join(self.root2, "missing"), os.path.join(self.root2, "link"))
        d1 = get_directory(self.root1, deep=True)
        d2 = get_directory(self.root2, deep=True)

        with self.assertLogs(ENGINE_LOG, level="WARNING") as cm:
            dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual([e.name for e in dir_diff.mods], ["/real"])
        self.assertTrue(any("/link" in line for line in cm.output))

    def test_unreadable_content_omits_entry(self):
        d1, d2 = self.snapshots({"f": b"aaa"}, {"f": b"bbb"})
        with patch(
            "imgdiff.fsdiff.engine._same_content", side_effect=PermissionError("denied")
        ):
            with self.assertLogs(ENGINE_LOG, level="WARNING"):
                dir_diff, same = diff_directory(d1, d2)
        self.assertEqual(dir_diff.mods, ())
        self.assertTrue(same)

    def test_regular_file_replaced_by_directory(self):
        d1, d2 = self.snapshots({"conf": b"x"}, {"conf": None})
        dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual([e.name for e in dir_diff.mods], ["/conf"])

    def test_directory_replaced_by_file_not_compared(self):
        d1, d2 = self.snapshots({"conf": None, "conf/a": 1}, {"conf": b"x"})
        dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual(dir_diff.mods, ())
        self.assertEqual([e.name for e in dir_diff.dels], ["/conf/a"])

    def test_small_chunk_size(self):
        content = bytes(range(256)) * 8
        changed = content[:-1] + b"\x00"
        d1, d2 = self.snapshots(
            {"same": content, "diff": content}, {"same": content, "diff": changed}
        )
        options = DiffOptions(chunk_size=7)
        dir_diff, _ = diff_directory(d1, d2, options=options)
        self.assertEqual([e.name for e in dir_diff.mods], ["/diff"])

    def test_results_sorted(self):
        d1, d2 = self.snapshots(
            {"z": 1, "m": 1, "q": b"1"},
            {"y": 1, "b": 1, "q": b"2", "a": 1},
        )
        dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual([e.name for e in dir_diff.adds], ["/a", "/b", "/y"])
        self.assertEqual([e.name for e in dir_diff.dels], ["/m", "/z"])

    def test_shallow_snapshot_sizes(self):
        d1, d2 = self.snapshots(
            {"etc/a": 10, "etc/b": 5},
            {"etc/a": 10, "etc/b": 5, "var/log/messages": 7},
            deep=False,
        )
        dir_diff, _ = diff_directory(d1, d2)
        self.assertEqual(dir_diff.adds, (DirectoryEntry("/var", 7),))

    def test_injected_logger(self):
        d1, d2 = self.snapshots({"a": 1}, {"b": 1})
        log = MagicMock()
        diff_directory(d1, d2, log=log)
        self.assertTrue(log.debug.called)
        for _, kwargs in log.debug.call_args_list:
            self.assertEqual(kwargs["extra"], {"subsystem": "imgdiff.fsdiff"})


class TestEntryHelpers(DiffEngineTestBase):
    def test_added_deleted_modified(self):
        d1, d2 = self.snapshots({"a": 1, "b": b"1"}, {"b": b"2", "c": 1})
        self.assertEqual(get_added_entries(d1, d2), ["/c"])
        self.assertEqual(get_deleted_entries(d1, d2), ["/a"])
        self.assertEqual(get_modified_entries(d1, d2), ["/b"])

    def test_get_directory_entries(self):
        make_tree(self.root1, {"bin/ls": 100, "bin/cat": 50})
        directory = get_directory(self.root1, deep=True)
        entries = get_directory_entries(directory)
        self.assertEqual(
            entries,
            [
                DirectoryEntry("/bin", 150),
                DirectoryEntry("/bin/cat", 50),
                DirectoryEntry("/bin/ls", 100),
            ],
        )

    def test_missing_entry_size_unknown(self):
        directory = Directory(self.root1, ["/gone"])
        with self.assertLogs(ENGINE_LOG, level="ERROR"):
            entries = get_directory_entries(directory)
        self.assertEqual(entries, [DirectoryEntry("/gone", SIZE_UNKNOWN)])


class TestGetSize(DiffEngineTestBase):
    def test_file(self):
        make_tree(self.root1, {"f": 123})
        self.assertEqual(get_size(os.path.join(self.root1, "f")), 123)

    def test_empty_file(self):
        make_tree(self.root1, {"f": b""})
        self.assertEqual(get_size(os.path.join(self.root1, "f")), 0)

    def test_directory_sum(self):
        make_tree(self.root1, {"d/a": 10, "d/sub/b": 20, "d/sub/c": 5, "d/empty": None})
        self.assertEqual(get_size(os.path.join(self.root1, "d")), 35)

    def test_directory_sum_counts_links_not_targets(self):
        make_tree(self.root1, {"d/a": 10, "target/big": 4096, "target/dir/f": 500})
        file_link = os.path.join(self.root1, "d", "file_link")
        dir_link = os.path.join(self.root1, "d", "dir_link")
        os.symlink(os.path.join(self.root1, "target", "big"), file_link)
        os.symlink(os.path.join(self.root1, "target", "dir"), dir_link)

        expected = 10 + os.lstat(file_link).st_size + os.lstat(dir_link).st_size
        self.assertEqual(get_size(os.path.join(self.root1, "d")), expected)

    def test_directory_sum_deep_chain(self):
        """Tree depth is not bounded by the interpreter recursion limit."""
        innermost = make_chain(os.path.join(self.root1, "d"), 400)
        make_tree(innermost, {"leaf": 7})
        make_tree(self.root1, {"d/top": 3})
        with recursion_headroom(150):
            size = get_size(os.path.join(self.root1, "d"))
        self.assertEqual(size, 10)

    def test_missing(self):
        with self.assertLogs(ENGINE_LOG, level="ERROR"):
            size = get_size(os.path.join(self.root1, "missing"))
        self.assertEqual(size, SIZE_UNKNOWN)

    def test_walk_error(self):
        make_tree(self.root1, {"d/a": 10})
        with patch("imgdiff.fsdiff.engine.os.lstat", side_effect=PermissionError("no")):
            with self.assertLogs(ENGINE_LOG, level="ERROR"):
                size = get_size(os.path.join(self.root1, "d"))
        self.assertEqual(size, SIZE_UNKNOWN)

    def test_injected_logger(self):
        log = logging.getLogger("imgdiff.tests.get_size")
        with self.assertLogs(log, level="ERROR") as cm:
            get_size(os.path.join(self.root1, "missing"), log=log)
        self.assertIn("missing", cm.output[0])

    def test_engine_shares_logger_with_archive_detector(self):
        log = logging.getLogger("imgdiff.tests.engine")
        engine = DiffEngine(log=log)
        self.assertIs(engine.archive_detector.log, log)

    def test_engine_get_size(self):
        make_tree(self.root1, {"f": 3})
        engine = DiffEngine()
        self.assertEqual(engine.get_size(os.path.join(self.root1, "f")), 3)


class TestDirDiff(unittest.TestCase):
    def setUp(self):
        self.dir_diff = DirDiff(
            adds=(DirectoryEntry("/a", 10), DirectoryEntry("/b", 300)),
            dels=(DirectoryEntry("/c", 20), DirectoryEntry("/d", 20)),
            mods=(EntryDiff("/e", 1, 5), EntryDiff("/f", 900, 2)),
        )

    def test_same(self):
        self.assertTrue(DirDiff().same)
        self.assertFalse(self.dir_diff.same)

    def test_records(self):
        self.assertEqual(
            self.dir_diff.records(),
            [
                (DiffType.ADDED, "/a"),
                (DiffType.ADDED, "/b"),
                (DiffType.REMOVED, "/c"),
                (DiffType.REMOVED, "/d"),
                (DiffType.MODIFIED, "/e"),
                (DiffType.MODIFIED, "/f"),
            ],
        )

    def test_sort_by_size(self):
        by_size = self.dir_diff.sort_by_size()
        self.assertEqual([e.name for e in by_size.adds], ["/b", "/a"])
        self.assertEqual([e.name for e in by_size.dels], ["/c", "/d"])
        self.assertEqual([e.name for e in by_size.mods], ["/e", "/f"])
        # Receiver is unchanged
        self.assertEqual([e.name for e in self.dir_diff.adds], ["/a", "/b"])

    def test_str(self):
        text = str(self.dir_diff)
        self.assertIn("added: /a (10.0B)", text)
        self.assertIn("modified: /f (900.0B -> 2.0B)", text)

    def test_unknown_size_str(self):
        self.assertEqual(str(DirectoryEntry("/x", SIZE_UNKNOWN)), "/x (unknown)")

    def test_json(self):
        data = json.loads(self.dir_diff.json())
        self.assertEqual(data["adds"][1], {"name": "/b", "size": 300})
        self.assertEqual(data["mods"][0], {"name": "/e", "size1": 1, "size2": 5})
