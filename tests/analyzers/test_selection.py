"""Tests for representative file selection."""

from __future__ import annotations

from assessor.analyzers.selection import ScoringPolicy, score_file, select_files, selected_paths, PROJECT_PATTERNS
from assessor.models import ProjectType, RepositoryTree, TreeEntry
from tests._fixtures.fakes import make_tree


def test_nextjs_selection_puts_readme_and_manifest_first() -> None:
    tree = make_tree(
        [
            "README.md",
            "package.json",
            "app/page.tsx",
            "app/layout.tsx",
            "components/Button.tsx",
            "next.config.js",
            "public/logo.png",
        ]
    )
    paths = selected_paths(select_files(tree, ProjectType.NEXTJS))

    assert paths[:2] == ["README.md", "package.json"]
    assert "app/page.tsx" in paths
    assert "public/logo.png" not in paths


def test_selection_never_exceeds_ten_files() -> None:
    tree = make_tree([f"src/module_{index}.py" for index in range(40)] + ["README.md"])
    selected = select_files(tree, ProjectType.PYTHON)

    assert len(selected) == 10
    assert selected[0].entry.path == "README.md"


def test_always_important_files_survive_many_high_scorers() -> None:
    files = [f"app/route_{index}/page.tsx" for index in range(30)]
    files += ["README.md", "package.json"]
    tree = make_tree(files)
    paths = selected_paths(select_files(tree, ProjectType.NEXTJS))

    assert "README.md" in paths
    assert "package.json" in paths
    assert len(paths) == 10


def test_exclusions_apply_before_scoring() -> None:
    tree = make_tree(
        {
            "README.md": 100,
            "package-lock.json": 100,
            "node_modules/react/index.js": 100,
            "dist/bundle.js": 100,
            "src/huge_fixture.py": 150_000,
            "src/main.py": 100,
        }
    )
    paths = selected_paths(select_files(tree, ProjectType.PYTHON))

    assert paths == ["README.md", "src/main.py"]


def test_non_blob_entries_are_ignored() -> None:
    tree = RepositoryTree(
        entries=[
            TreeEntry(path="src", size=0, kind="tree"),
            TreeEntry(path="vendor-lib", size=0, kind="commit"),
            TreeEntry(path="README.md", size=10, kind="blob"),
        ]
    )
    assert selected_paths(select_files(tree, ProjectType.UNKNOWN)) == ["README.md"]


def test_ties_break_by_path() -> None:
    tree = make_tree(["src/b.py", "src/a.py", "src/c.py"])
    assert selected_paths(select_files(tree, ProjectType.PYTHON)) == ["src/a.py", "src/b.py", "src/c.py"]


def test_testing_keywords_raise_test_file_weight() -> None:
    policy = ScoringPolicy()
    entry = TreeEntry(path="tests/test_api.py", size=10, kind="blob")
    patterns = PROJECT_PATTERNS[ProjectType.UNKNOWN]

    plain = score_file(entry, patterns, emphasise_tests=False, policy=policy)
    emphasised = score_file(entry, patterns, emphasise_tests=True, policy=policy)

    assert plain.score == policy.test_file
    assert emphasised.score == policy.test_file_emphasised


def test_keywords_change_selection_order() -> None:
    tree = make_tree(["tests/test_app.py", "docs/guide.md", "setup.cfg"])

    default = selected_paths(select_files(tree, ProjectType.UNKNOWN))
    testing = selected_paths(select_files(tree, ProjectType.UNKNOWN, ["testing", "coverage"]))

    assert default[0] == "setup.cfg"
    assert testing[0] == "tests/test_app.py"


def test_policy_overrides_are_honoured() -> None:
    tree = make_tree([f"src/file_{index}.py" for index in range(8)])
    selected = select_files(tree, ProjectType.PYTHON, policy=ScoringPolicy(max_files=3))
    assert len(selected) == 3


def test_zero_score_files_are_not_selected() -> None:
    tree = make_tree(["LICENSE", "scripts/run.sh"])
    assert select_files(tree, ProjectType.GO) == []
