"""Reusable multirust home and toolchain fixtures for testing.

This module provides pytest fixtures that create isolated multirust home
directories, configuration roots with a recording notifier, and fake
toolchain trees whose binaries are small shell scripts.
"""

import stat
from pathlib import Path
from typing import List

import pytest

from multirustkit.config.root import Cfg
from multirustkit.core.filesystem import recursive_copy
from multirustkit.core.notifications import Notification, Notifier
from multirustkit.core.settings import Settings

TEST_DIST_ROOT = "https://dist.example.test/dist"

FAKE_BINARY_SCRIPT = """#!/bin/sh
if [ "$1" = "--version" ]; then
    echo "{name} 1.0.0-fake (0000000 2015-01-01)"
    exit 0
fi
if [ -n "$MULTIRUST_TEST_OUT" ]; then
    echo "$@" > "$MULTIRUST_TEST_OUT"
fi
exit ${{MULTIRUST_TEST_EXIT:-0}}
"""


def write_script(path: Path, content: str) -> Path:
    """Write an executable shell script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_fake_toolchain_tree(root: Path, binaries=("rustc", "cargo")) -> Path:
    """
    Create a directory that looks like an installed toolchain prefix.

    Layout:
        bin/<binary>                    (shell scripts answering --version)
        lib/librustc_driver.so
        share/doc/rust/html/index.html
        share/doc/rust/html/std/index.html
    """
    root.mkdir(parents=True, exist_ok=True)
    for binary in binaries:
        write_script(root / "bin" / binary, FAKE_BINARY_SCRIPT.format(name=binary))
    (root / "lib").mkdir(exist_ok=True)
    (root / "lib" / "librustc_driver.so").write_text("fake library")
    docs = root / "share" / "doc" / "rust" / "html"
    (docs / "std").mkdir(parents=True, exist_ok=True)
    (docs / "index.html").write_text("<html>index</html>")
    (docs / "std" / "index.html").write_text("<html>std</html>")
    return root


def install_fake_toolchain(cfg: Cfg, name: str, binaries=("rustc", "cargo")) -> Path:
    """Place a fake toolchain directly at the prefix for `name`."""
    prefix = cfg.toolchains_dir / name
    make_fake_toolchain_tree(prefix, binaries)
    return prefix


@pytest.fixture
def multirust_home(tmp_path, monkeypatch) -> Path:
    """
    Isolated multirust home directory (not created).

    MULTIRUST_HOME points at it so code reading the environment agrees.
    """
    home = tmp_path / "multirust-home"
    monkeypatch.setenv("MULTIRUST_HOME", str(home))
    monkeypatch.delenv("MULTIRUST_DIST_ROOT", raising=False)
    return home


@pytest.fixture
def notifications() -> List[Notification]:
    """List collecting every notification emitted during a test."""
    return []


@pytest.fixture
def notifier(notifications) -> Notifier:
    return Notifier(notifications.append)


@pytest.fixture
def cfg(multirust_home, notifier) -> Cfg:
    """Configuration root over an isolated home with a test dist server."""
    return Cfg(multirust_home, notifier, Settings(dist_root=TEST_DIST_ROOT))


@pytest.fixture
def fake_toolchain_dir(tmp_path) -> Path:
    """A toolchain-shaped directory outside the home, usable as a local source."""
    return make_fake_toolchain_tree(tmp_path / "local-build")


@pytest.fixture
def installed_toolchain(cfg, fake_toolchain_dir):
    """Factory installing a fake toolchain under a name by copying."""

    def install(name: str) -> Path:
        prefix = cfg.toolchains_dir / name
        recursive_copy(fake_toolchain_dir, prefix)
        return prefix

    return install


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """A nested project tree: proj/src/deep."""
    deep = tmp_path / "proj" / "src" / "deep"
    deep.mkdir(parents=True)
    return tmp_path / "proj"
