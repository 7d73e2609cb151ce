"""
Tests for request path -> script resolution.
"""

from pathlib import Path

import pytest

from milan.errors import InvalidScriptName, NoScriptSpecified, ScriptNotFound
from milan.resolver import resolve_path, split_path
from milan.scripts_dir import ScriptCatalog


@pytest.fixture
def catalog(scripts_dir):
    return ScriptCatalog(scripts_dir, ".py")


class TestSplitPath:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/hello", ("hello", "")),
            ("/hello/", ("hello", "")),
            ("/hello/world", ("hello", "world")),
            ("/hello/a/b", ("hello", "a/b")),
            ("//hello//a//b/", ("hello", "a/b")),
            ("/hello/a%20b", ("hello", "a b")),
            ("/hello/a%2Fb", ("hello", "a/b")),
            ("/mail/x%40example.org", ("mail", "x@example.org")),
            ("/hello/a+b", ("hello", "a+b")),
        ],
    )
    def test_split(self, raw, expected):
        assert split_path(raw) == expected

    @pytest.mark.parametrize("raw", ["", "/", "///"])
    def test_no_segments(self, raw):
        with pytest.raises(NoScriptSpecified):
            split_path(raw)


class TestResolvePath:

    def test_resolves_existing_script(self, catalog, make_script):
        path = make_script("hello", "print('hi')")
        script = resolve_path("/hello/world", catalog)
        assert script.name == "hello"
        assert script.path == path
        assert script.argument == "world"

    def test_missing_script(self, catalog):
        with pytest.raises(ScriptNotFound) as exc:
            resolve_path("/nope", catalog)
        assert exc.value.message == "Script 'nope' not found"
        assert exc.value.status_code == 404

    def test_directory_is_not_a_script(self, catalog, scripts_dir):
        (scripts_dir / "dir.py").mkdir()
        with pytest.raises(ScriptNotFound):
            resolve_path("/dir", catalog)

    def test_extension_is_fixed(self, catalog, make_script):
        make_script("hello", "print('hi')", extension=".sh")
        with pytest.raises(ScriptNotFound):
            resolve_path("/hello", catalog)

    @pytest.mark.parametrize(
        "raw",
        [
            "/..",
            "/../etc/passwd",
            "/..%2F..%2Fetc",
            "/hello.py",
            "/a%20b",
            "/hello;ls",
            "/hello&&id",
            "/$(id)",
            "/`id`",
            "/hello|cat",
            "/h%C3%A9llo",
            "/héllo",
            "/~root",
        ],
    )
    def test_invalid_names_rejected_before_filesystem(self, raw, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("filesystem touched")

        monkeypatch.setattr(Path, "is_file", boom)
        sentinel = ScriptCatalog(Path("/nonexistent/milan-sentinel"), ".py")

        with pytest.raises(InvalidScriptName) as exc:
            resolve_path(raw, sentinel)
        assert exc.value.status_code == 403
        assert exc.value.message == "Invalid script name"

    @pytest.mark.parametrize("name", ["hello", "HELLO", "a_b", "a-b", "x1", "_", "-"])
    def test_valid_names_reach_lookup(self, catalog, name):
        with pytest.raises(ScriptNotFound):
            resolve_path(f"/{name}", catalog)
