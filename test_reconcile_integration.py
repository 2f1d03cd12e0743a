#!/usr/bin/env python3
"""
End-to-end reconciliation tests.

Every test builds bare remotes in a temporary directory and references them
from manifests with file:// identifiers, so the full clone, pull, stash and
sweep paths run against real git without network access.
"""

import io
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from gitjoin import Config, Reconciler, sync
from gitjoin.errors import FilterPatternError, ReconcileError
from gitjoin.gitignore import END_MARKER, START_MARKER
from gitjoin.results import OutcomeKind
from gitjoin.synchronizer import RepositorySynchronizer
from git_fixtures import (
    GIT_IDENTITY, clone_checkout, create_remote, head_of, push_commit,
    remote_identifier, run_git, write_manifest
)


@pytest.fixture
def workspace():
    """Scratch directory with an empty reconciliation root at ``tree``."""
    with tempfile.TemporaryDirectory() as temp_dir, patch.dict(os.environ, GIT_IDENTITY):
        base = Path(temp_dir)
        (base / "tree").mkdir()
        yield base


def reconcile(root: Path, **config_values):
    return Reconciler(Config(root=root, workers=4, **config_values)).run()


def test_fresh_tree_clones_everything(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    hugo = create_remote(workspace, "hugo")
    write_manifest(tree, remote_identifier(helpers))
    write_manifest(tree / "libs", remote_identifier(hugo))

    report = reconcile(tree)

    assert [o.path for o in report.cloned] == ["helpers", "libs/hugo"]
    assert report.updated == []
    assert report.warnings == []
    assert head_of(tree / "libs" / "hugo") == head_of(hugo, "main")
    assert run_git(tree / "helpers", "branch", "--show-current") == "main"


def test_second_run_is_idempotent(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    write_manifest(tree, remote_identifier(helpers))

    reconcile(tree)
    ignore_before = (tree / ".gitignore").read_bytes()
    report = reconcile(tree)

    assert report.is_empty()
    assert (tree / ".gitignore").read_bytes() == ignore_before


def test_clean_checkout_is_pulled(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    write_manifest(tree, remote_identifier(helpers))
    reconcile(tree)

    new_head = push_commit(helpers, workspace, "CHANGELOG.md", "v2\n")
    report = reconcile(tree)

    assert [(o.path, o.detail) for o in report.updated] == [("helpers", "pulled")]
    assert head_of(tree / "helpers") == new_head


def test_orphan_is_removed_after_manifest_edit(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    hugo = create_remote(workspace, "hugo")
    manifest = write_manifest(tree, remote_identifier(helpers), remote_identifier(hugo))
    reconcile(tree)

    manifest.write_text(remote_identifier(helpers) + "\n")
    report = reconcile(tree)

    assert report.removed == ["hugo"]
    assert not (tree / "hugo").exists()
    assert (tree / "helpers" / ".git").is_dir()
    assert "hugo/" not in (tree / ".gitignore").read_text()


def test_failing_repository_does_not_affect_others(workspace):
    """One bad identifier is a warning; the rest of the run completes."""
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    missing = (workspace / "remotes" / "missing").as_uri()
    write_manifest(tree, remote_identifier(helpers), missing, "nohost")

    report = reconcile(tree)

    assert [o.path for o in report.cloned] == ["helpers"]
    assert len(report.warnings) == 2
    assert any(w.startswith("missing: clone failed") for w in report.warnings)
    assert any(w.startswith("nohost: resolve remote failed") for w in report.warnings)
    assert report.removed == []
    assert not (tree / "missing").exists()


def test_dirty_checkout_is_skipped(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    write_manifest(tree, remote_identifier(helpers))
    reconcile(tree)
    old_head = head_of(tree / "helpers")

    push_commit(helpers, workspace, "CHANGELOG.md", "v2\n")
    (tree / "helpers" / "README.md").write_text("local edit\n")
    report = reconcile(tree)

    assert [(o.path, o.detail) for o in report.skipped_uncommitted] == [("helpers", "1 modified")]
    assert head_of(tree / "helpers") == old_head
    assert (tree / "helpers" / "README.md").read_text() == "local edit\n"


def test_feature_branch_is_skipped_without_force(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers", branches={"feature": {"feature.txt": "f\n"}})
    clone_checkout(helpers, tree / "helpers")
    run_git(tree / "helpers", "switch", "feature")
    write_manifest(tree, remote_identifier(helpers))

    report = reconcile(tree)

    assert [(o.path, o.detail) for o in report.skipped_non_default] == [("helpers", "on feature")]
    assert run_git(tree / "helpers", "branch", "--show-current") == "feature"


def test_force_with_unstash_conflict(workspace):
    """Stash, switch and pull succeed; restoring the stash conflicts and is kept."""
    tree = workspace / "tree"
    helpers = create_remote(
        workspace, "helpers",
        files={"shared.txt": "base\n"},
        branches={"feature": {"feature.txt": "f\n"}}
    )
    checkout = clone_checkout(helpers, tree / "helpers")
    run_git(checkout, "switch", "feature")
    (checkout / "shared.txt").write_text("local edit\n")
    push_commit(helpers, workspace, "shared.txt", "upstream edit\n")
    write_manifest(tree, remote_identifier(helpers))

    report = reconcile(tree, force=True)

    assert [(o.path, o.detail) for o in report.updated] == [
        ("helpers", "stashed, switched to main, pulled")
    ]
    assert len(report.warnings) == 1
    assert "kept in stash" in report.warnings[0]
    assert run_git(checkout, "branch", "--show-current") == "main"
    assert head_of(checkout) == head_of(helpers, "main")
    assert "gitjoin" in run_git(checkout, "stash", "list")


def test_force_restores_non_conflicting_changes(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers", branches={"feature": {"feature.txt": "f\n"}})
    checkout = clone_checkout(helpers, tree / "helpers")
    run_git(checkout, "switch", "feature")
    (checkout / "notes.txt").write_text("scratch\n")
    write_manifest(tree, remote_identifier(helpers))

    report = reconcile(tree, force=True)

    assert [(o.path, o.detail) for o in report.updated] == [
        ("helpers", "stashed, switched to main, unstashed")
    ]
    assert report.warnings == []
    assert (checkout / "notes.txt").read_text() == "scratch\n"
    assert run_git(checkout, "stash", "list") == ""


def test_plain_directory_at_expected_path_is_a_warning(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    (tree / "helpers").mkdir()
    (tree / "helpers" / "keep.txt").write_text("mine\n")
    write_manifest(tree, remote_identifier(helpers))

    report = reconcile(tree)

    assert report.warnings == ["helpers: not a git repository"]
    assert (tree / "helpers" / "keep.txt").read_text() == "mine\n"


def test_ignore_file_lists_expected_paths(workspace):
    tree = workspace / "tree"
    helpers = create_remote(workspace, "helpers")
    hugo = create_remote(workspace, "hugo")
    (tree / ".gitignore").write_text("*.log\n")
    write_manifest(tree / "libs", remote_identifier(hugo), remote_identifier(helpers))

    reconcile(tree)

    assert (tree / ".gitignore").read_text() == (
        "*.log\n\n"
        f"{START_MARKER}\n"
        "libs/helpers/\n"
        "libs/hugo/\n"
        f"{END_MARKER}\n"
    )


def test_path_filter_limits_the_run(workspace):
    tree = workspace / "tree"
    top = create_remote(workspace, "top")
    helpers = create_remote(workspace, "helpers")
    write_manifest(tree, remote_identifier(top))
    write_manifest(tree / "libs", remote_identifier(helpers))

    report = reconcile(tree, paths="libs/*")

    assert [o.path for o in report.cloned] == ["libs/helpers"]
    assert not (tree / "top").exists()


def test_filtered_run_still_removes_undeclared_checkouts(workspace):
    """The sweep and the ignore block both follow the expected set."""
    tree = workspace / "tree"
    top = create_remote(workspace, "top")
    helpers = create_remote(workspace, "helpers")
    root_manifest = write_manifest(tree, remote_identifier(top))
    write_manifest(tree / "libs", remote_identifier(helpers))
    reconcile(tree)

    root_manifest.write_text("")
    report = reconcile(tree, paths="libs/*")

    assert report.removed == ["top"]
    assert not (tree / "top").exists()
    assert (tree / "libs" / "helpers" / ".git").is_dir()
    ignore = (tree / ".gitignore").read_text()
    assert "libs/helpers/" in ignore
    assert "top/" not in ignore


class FailingSynchronizer(RepositorySynchronizer):
    """Raises a run-level error for one path, synchronizes the rest."""

    def __init__(self, config, failing_path):
        super().__init__(config)
        self.failing_path = failing_path

    def synchronize(self, local_path, identifier):
        if local_path == self.failing_path:
            raise ReconcileError("cannot prepare checkout", local_path)
        return super().synchronize(local_path, identifier)


def test_run_level_error_in_worker_aborts_before_sweep(workspace):
    tree = workspace / "tree"
    stale = clone_checkout(create_remote(workspace, "stale"), tree / "stale")
    write_manifest(
        tree,
        remote_identifier(create_remote(workspace, "a")),
        remote_identifier(create_remote(workspace, "b")),
    )
    config = Config(root=tree, workers=2)

    with pytest.raises(ReconcileError) as excinfo:
        Reconciler(config, FailingSynchronizer(config, "b")).run()

    assert excinfo.value.path == "b"
    assert (stale / ".git").is_dir()
    assert not (tree / ".gitignore").exists()


def test_malformed_filter_aborts_before_touching_the_tree(workspace):
    tree = workspace / "tree"
    write_manifest(tree, remote_identifier(create_remote(workspace, "helpers")))

    with pytest.raises(FilterPatternError):
        reconcile(tree, paths="[oops")

    assert not (tree / "helpers").exists()
    assert not (tree / ".gitignore").exists()


def test_sync_prints_report(workspace):
    tree = workspace / "tree"
    write_manifest(tree, remote_identifier(create_remote(workspace, "helpers")))
    stream = io.StringIO()

    report = sync(Config(root=tree), stream)

    assert [o.kind for o in report.outcomes] == [OutcomeKind.CLONED]
    assert stream.getvalue() == "Cloned: 1 repos\n  - helpers\n"


def test_sync_quiet_prints_nothing(workspace):
    tree = workspace / "tree"
    write_manifest(tree, remote_identifier(create_remote(workspace, "helpers")))
    stream = io.StringIO()

    sync(Config(root=tree, quiet=True), stream)

    assert stream.getvalue() == ""
    assert (tree / "helpers" / ".git").is_dir()


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
