"""Tests for project type classification."""

from __future__ import annotations

import json

from assessor.analyzers.classify import (
    DEFAULT_RULES,
    ProjectTypeRule,
    build_context,
    classify_project_type,
    manifest_paths,
)
from assessor.models import ProjectType
from tests._fixtures.fakes import make_tree


def _package_json(**deps: str) -> str:
    return json.dumps({"name": "app", "dependencies": deps})


def test_nextjs_detected_from_dependency() -> None:
    tree = make_tree(["README.md", "package.json", "app/page.tsx", "app/layout.tsx"])
    result = classify_project_type(tree, {"package.json": _package_json(next="14.0.0", react="18.2.0")})

    assert result.project_type is ProjectType.NEXTJS
    assert result.rule == "next-config-or-dependency"


def test_nextjs_detected_from_config_file_without_manifest() -> None:
    tree = make_tree(["next.config.js", "pages/index.js"])
    assert classify_project_type(tree, {}).project_type is ProjectType.NEXTJS


def test_react_wins_over_express_and_node() -> None:
    tree = make_tree(["package.json", "src/App.jsx"])
    contents = {"package.json": _package_json(react="18.2.0", express="4.0.0")}
    assert classify_project_type(tree, contents).project_type is ProjectType.REACT


def test_express_detected_from_dependency() -> None:
    tree = make_tree(["package.json", "server.js"])
    contents = {"package.json": _package_json(express="4.18.2")}
    assert classify_project_type(tree, contents).project_type is ProjectType.EXPRESS


def test_plain_node_project() -> None:
    tree = make_tree(["package.json", "index.js"])
    contents = {"package.json": _package_json(lodash="4.17.21")}
    assert classify_project_type(tree, contents).project_type is ProjectType.NODE


def test_python_frameworks_detected_from_requirements() -> None:
    tree = make_tree(["requirements.txt", "main.py"])

    assert classify_project_type(tree, {"requirements.txt": "fastapi==0.110\nuvicorn\n"}).project_type is ProjectType.FASTAPI
    assert classify_project_type(tree, {"requirements.txt": "Flask>=2.0\n"}).project_type is ProjectType.FLASK
    assert classify_project_type(tree, {"requirements.txt": "requests\n"}).project_type is ProjectType.PYTHON


def test_flask_requirement_does_not_match_prefixed_package() -> None:
    tree = make_tree(["requirements.txt", "app.py"])
    result = classify_project_type(tree, {"requirements.txt": "flask-cors==4.0\n"})
    assert result.project_type is ProjectType.PYTHON


def test_django_detected_from_manage_py() -> None:
    tree = make_tree(["manage.py", "shop/settings.py", "shop/urls.py"])
    assert classify_project_type(tree, {}).project_type is ProjectType.DJANGO


def test_manifest_rules_for_other_languages() -> None:
    assert classify_project_type(make_tree(["go.mod", "main.go"]), {}).project_type is ProjectType.GO
    assert classify_project_type(make_tree(["Cargo.toml", "src/main.rs"]), {}).project_type is ProjectType.RUST
    assert classify_project_type(make_tree(["pom.xml", "src/main/java/App.java"]), {}).project_type is ProjectType.JAVA


def test_static_site_detected_from_index_html() -> None:
    tree = make_tree(["index.html", "styles.css", "script.js"])
    assert classify_project_type(tree, {}).project_type is ProjectType.STATIC


def test_majority_language_fallback() -> None:
    tree = make_tree(["scripts/a.py", "scripts/b.py", "notes.md"])
    result = classify_project_type(tree, {})
    assert result.project_type is ProjectType.PYTHON
    assert result.rule == "majority-python"


def test_unknown_when_nothing_matches() -> None:
    result = classify_project_type(make_tree(["notes.md", "LICENSE"]), {})
    assert result.project_type is ProjectType.UNKNOWN
    assert result.rule == "fallback"


def test_vendored_files_do_not_vote() -> None:
    tree = make_tree(["node_modules/lib/a.js", "node_modules/lib/b.js", "main.go"])
    context = build_context(tree, {})
    assert context.majority_language == "Go"


def test_first_matching_rule_wins_with_custom_table() -> None:
    rules = (
        ProjectTypeRule("always-static", lambda ctx: True, ProjectType.STATIC),
        *DEFAULT_RULES,
    )
    tree = make_tree(["package.json"])
    result = classify_project_type(tree, {"package.json": _package_json(next="14")}, rules)
    assert result.project_type is ProjectType.STATIC


def test_classification_is_deterministic() -> None:
    tree = make_tree(["a.py", "b.go"])
    first = classify_project_type(tree, {})
    reordered = make_tree(["b.go", "a.py"])
    assert classify_project_type(reordered, {}) == first
    assert classify_project_type(tree, {}) == first


def test_malformed_package_json_still_yields_dependencies() -> None:
    tree = make_tree(["package.json", "index.js"])
    broken = '{"dependencies": {"react": "^18.0.0",}}'
    assert classify_project_type(tree, {"package.json": broken}).project_type is ProjectType.REACT


def test_manifest_paths_lists_root_manifests_only() -> None:
    tree = make_tree(["package.json", "requirements.txt", "web/package.json", "README.md"])
    assert manifest_paths(tree) == ["package.json", "requirements.txt"]
