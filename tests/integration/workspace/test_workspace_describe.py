"""End-to-end tests for ``trambar_deco.workspace.Workspace``.

Builds small repositories on disk, describes them, then replays file events
to check that cached state is dropped and observers hear about it.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
import unittest
from pathlib import Path

from trambar_deco.change_tracker import EventKind, FileEvent
from trambar_deco.errors import RepositoryNotFoundError, WorkingDirectoryError
from trambar_deco.workspace import Workspace, find_repository_root


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _make_repo(root: Path) -> None:
    (root / ".git").mkdir()
    _write(root / ".gitignore", "build/\n*.tmp\n")
    _write(root / "build" / "out.js", "generated\n")
    _write(root / "web" / "widget.js", "export {}\n")
    _write(root / "web" / "widget.css", ".w {}\n")
    _write(root / "web" / "scratch.tmp", "x\n")
    _write(root / "web" / ".trambar" / "widget.md", "Widget.\n\n[icon]: fa://cube/navy\n")
    _write(root / "shared" / "util.js", "export {}\n")
    _write(
        root / "web" / ".trambar" / "helpers.md",
        "Helpers.\n\n```match\n../shared/*.js\n```\n",
    )
    _write(root / ".trambar" / "project.md", "Project.\n\n```match\n*.js\n!build/\n```\n")


def _files(payload: dict[str, object]) -> dict[str, list[str]]:
    return {
        component["id"]: [entry["path"] for entry in component["files"]]
        for component in payload["components"]
    }


class FindRepositoryRootTests(unittest.TestCase):
    def test_walks_up_to_the_enclosing_repository(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)

            self.assertEqual(find_repository_root(root / "web" / ".trambar"), root)

    def test_missing_folder_raises_working_directory_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(WorkingDirectoryError):
                find_repository_root(Path(tmp) / "missing")

    def test_no_repository_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            if any((parent / ".git").exists() for parent in (root, *root.parents)):
                self.skipTest("temporary directory sits inside a repository")
            with self.assertRaises(RepositoryNotFoundError) as raised:
                find_repository_root(root)
            self.assertEqual(raised.exception.exit_code, 2)


class WorkspaceDescribeTests(unittest.TestCase):
    def test_describe_flat_resolves_every_rule_kind(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace(root, language="en")

            payload = workspace.describe_flat()
            files = _files(payload)

            self.assertEqual(files["web/widget"], ["web/widget.css", "web/widget.js"])
            self.assertEqual(files["web/helpers"], ["shared/util.js"])
            self.assertEqual(files["project"], ["shared/util.js", "web/widget.js"])
            widget = next(c for c in payload["components"] if c["id"] == "web/widget")
            self.assertEqual(widget["icon"], {"class": "cube", "backgroundColor": "navy", "color": None})

            folder_paths = [child["path"] for child in payload["folders"][0]["children"]]
            self.assertNotIn("build", folder_paths)
            self.assertNotIn(".git", folder_paths)

    def test_describe_from_subfolder_keeps_repository_descriptors(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace.discover(root / "shared", language="en")

            payload = workspace.describe_tree(root / "shared")

            self.assertEqual(payload["folder"]["path"], "shared")
            (util,) = payload["folder"]["children"]
            self.assertEqual(util["components"], ["project", "web/helpers"])

    def test_start_outside_repository_falls_back_to_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve() / "repo"
            root.mkdir()
            _make_repo(root)
            workspace = Workspace(root, language="en")

            payload = workspace.describe_tree(root.parent)

            self.assertEqual(payload["folder"]["path"], "")

    def test_repeated_describe_is_byte_identical(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            for index in range(6):
                _write(root / f"pkg{index}" / "widget.js", "export {}\n")
                _write(root / f"pkg{index}" / "nested" / "data.bin", "\x00\x01")
            workspace = Workspace(root, language="en", max_workers=4)
            sequential = Workspace(root, language="en", max_workers=1)

            first = json.dumps(workspace.describe_tree())
            second = json.dumps(workspace.describe_tree())

            self.assertEqual(first, second)
            self.assertEqual(first, json.dumps(sequential.describe_tree()))
            self.assertEqual(json.dumps(workspace.describe_flat()), json.dumps(workspace.describe_flat()))

    @unittest.skipUnless(hasattr(os, "mkfifo"), "named pipes unavailable")
    def test_named_pipe_in_tree_does_not_block_describe(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            os.mkfifo(root / "web" / "pipe")
            workspace = Workspace(root, language="en")
            result: list[dict[str, object]] = []

            worker = threading.Thread(target=lambda: result.append(workspace.describe_flat()), daemon=True)
            worker.start()
            worker.join(5)

            self.assertFalse(worker.is_alive(), "describe blocked on a named pipe")
            self.assertEqual(_files(result[0])["web/widget"], ["web/widget.css", "web/widget.js"])


class WorkspaceChangeTests(unittest.TestCase):
    def test_new_file_event_notifies_and_next_describe_sees_it(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace(root, language="en")
            received: list[str] = []
            workspace.notifier.subscribe(received.append)
            workspace.describe_flat()

            _write(root / "web" / "widget.html", "<div></div>\n")
            self.assertTrue(workspace.handle_event(FileEvent(EventKind.ADD, root / "web" / "widget.html")))

            self.assertEqual(received, ["change"])
            self.assertIn("web/widget.html", _files(workspace.describe_flat())["web/widget"])

    def test_definition_edit_changes_matches(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace(root, language="en")
            workspace.describe_flat()

            definition = root / "web" / ".trambar" / "widget.md"
            definition.write_text("Widget.\n\n```match\n*.css\n```\n", encoding="utf-8")
            workspace.handle_event(FileEvent(EventKind.CHANGE, definition))

            self.assertEqual(_files(workspace.describe_flat())["web/widget"], ["web/widget.css"])

    def test_ignore_file_edit_rescans_with_new_rules(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace(root, language="en")
            workspace.describe_flat()

            _write(root / ".gitignore", "build/\n*.tmp\nshared/\n")
            self.assertTrue(workspace.handle_event(FileEvent(EventKind.CHANGE, root / ".gitignore")))

            payload = workspace.describe_flat()
            self.assertEqual(_files(payload)["web/helpers"], [])
            folder_paths = [child["path"] for child in payload["folders"][0]["children"]]
            self.assertNotIn("shared", folder_paths)

    def test_removed_definition_folder_drops_component(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace(root, language="en")
            workspace.describe_flat()

            for definition in (root / "web" / ".trambar").iterdir():
                definition.unlink()
            (root / "web" / ".trambar").rmdir()
            workspace.handle_event(FileEvent(EventKind.UNLINK, root / "web" / ".trambar"))

            self.assertEqual(sorted(_files(workspace.describe_flat())), ["project"])

    def test_clear_caches_picks_up_unannounced_edits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            workspace = Workspace(root, language="en")
            workspace.describe_flat()

            _write(root / "web" / "widget.ts", "export {}\n")
            self.assertNotIn("web/widget.ts", _files(workspace.describe_flat())["web/widget"])

            workspace.clear_caches()
            self.assertEqual(len(workspace.scanner.cache), 0)
            self.assertIn("web/widget.ts", _files(workspace.describe_flat())["web/widget"])

    def test_image_lookup_is_scoped_to_the_repository(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_repo(root)
            (root / "web" / ".trambar" / "logo.svg").write_text("<svg/>", encoding="utf-8")
            workspace = Workspace(root, language="en")

            self.assertEqual(workspace.resolve_image("web/.trambar/logo.svg"), root / "web" / ".trambar" / "logo.svg")
            self.assertIsNone(workspace.resolve_image("web/widget.js"))


if __name__ == "__main__":
    unittest.main()
