"""Shared fixtures: fake ``node_modules`` trees built under ``tmp_path``."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeAlias

import pytest

PackageFactory: TypeAlias = Callable[..., Path]


@pytest.fixture
def node_modules(tmp_path: Path) -> Path:
    """An empty packages directory."""
    root = tmp_path / "node_modules"
    root.mkdir()
    return root


@pytest.fixture
def make_package(node_modules: Path) -> PackageFactory:
    """Install a fake package: ``make_package("foo", {"main": ...}, files={...})``.

    *manifest* may be a dict (dumped as JSON), a raw string, or ``None``
    to create the directory without a ``package.json``.
    """

    def factory(
        name: str,
        manifest: dict[str, Any] | str | None,
        *,
        files: dict[str, str | bytes] | None = None,
    ) -> Path:
        directory = node_modules / name
        directory.mkdir(parents=True)
        if isinstance(manifest, dict):
            (directory / "package.json").write_text(json.dumps(manifest))
        elif isinstance(manifest, str):
            (directory / "package.json").write_text(manifest)
        for relative, content in (files or {}).items():
            path = directory / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return directory

    return factory


@pytest.fixture
def foo_package(make_package: PackageFactory) -> Path:
    """The ``foo`` package: entry, one exact export, one glob export."""
    return make_package(
        "foo",
        {
            "name": "foo",
            "version": "1.2.3",
            "main": "index.js",
            "exports": {
                ".": "index.js",
                "./bar": "lib/bar.js",
                "./glob/*": "dist/*.min.js",
            },
        },
        files={
            "index.js": "export default 'foo';",
            "lib/bar.js": "export const bar = 1;",
            "dist/x.min.js": "export const x=1;",
            "unknown.css": "body { color: red; }",
        },
    )
