"""Shared test fixtures for ImpactLens."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest


def _write(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


JS_FILES = {
    "src/utils/format.js": '''export function formatDate(d) {
  return d.toISOString().slice(0, 10);
}

export function formatMoney(n) {
  return `$${n.toFixed(2)}`;
}
''',
    "src/components/Header.jsx": '''import React from "react";
import { formatDate } from "../utils/format";

export function Header({ date }) {
  return <h1>{formatDate(date)}</h1>;
}
''',
    "src/components/Footer.jsx": '''import React from "react";
import { formatMoney } from "../utils/format.js";

export default function Footer({ total }) {
  return <footer>{formatMoney(total)}</footer>;
}
''',
    "src/pages/Home.js": '''import { Header } from "../components/Header";
const fmt = require("../utils/format");

export function Home() {
  return Header({ date: new Date() });
}
''',
    "src/pages/About.js": '''export async function About() {
  const { default: Footer } = await import("../components/Footer");
  return Footer({ total: 0 });
}
''',
    "src/services/report.ts": '''import type { Row } from "./types";
import { formatMoney } from "../utils/format";

export function total(rows: Row[]): string {
  return formatMoney(rows.reduce((s, r) => s + r.amount, 0));
}
''',
    "src/app.js": '''import { Home } from "./pages/Home";
import { About } from "./pages/About";

export const routes = { "/": Home, "/about": About };
''',
    "src/index.js": '''import { routes } from "./app";

console.log(Object.keys(routes));
''',
    "src/auth/login.js": '''import { formatDate } from "../utils/format";

export function login(user, password) {
  if (!user || !password) {
    return null;
  }
  return { user, at: formatDate(new Date()) };
}
''',
    "tests/login.test.js": '''import { login } from "../src/auth/login";

test("rejects empty password", () => {
  expect(login("ana", "")).toBeNull();
});
''',
    "tests/format.spec.js": '''describe("formatting", () => {
  it("pads money", () => {
    expect(true).toBe(true);
  });
});
''',
    "tests/misc.test.js": '''// Snapshot covers the Header.jsx markup.
test("snapshot", () => {
  expect(1).toBe(1);
});
''',
    "node_modules/lib/index.js": '''import "../../src/utils/format";
''',
    "README.md": "# demo\n",
}


PY_FILES = {
    "pkg/__init__.py": "",
    "pkg/models.py": '''class User:
    def __init__(self, name):
        self.name = name
''',
    "pkg/helpers.py": '''def slug(text):
    return text.lower().replace(" ", "-")
''',
    "pkg/service.py": '''from .models import User
from . import helpers


def create(name):
    return User(helpers.slug(name))
''',
    "pkg/api/__init__.py": "",
    "pkg/api/routes.py": '''from ..service import create
from ..models import User  # noqa


def handle(payload):
    return create(payload["name"])
''',
    "tests/test_service.py": '''from pkg.service import create


def test_create():
    assert create("A B").name == "a-b"
''',
}


@pytest.fixture
def js_repo(tmp_path: Path) -> Path:
    """A small JavaScript/TypeScript repository with tests."""
    root = tmp_path / "js_repo"
    root.mkdir()
    _write(root, JS_FILES)
    return root


@pytest.fixture
def py_repo(tmp_path: Path) -> Path:
    """A small Python package using relative imports."""
    root = tmp_path / "py_repo"
    root.mkdir()
    _write(root, PY_FILES)
    return root


def _git(root: Path, *args: str) -> str:
    env = {
        **os.environ,
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    }
    result = subprocess.run(
        ["git", *args], cwd=root, env=env, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def git_repo(js_repo: Path) -> Path:
    """js_repo committed on `main`, with a `feature` branch touching format.js."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    _git(js_repo, "init", "-q")
    _git(js_repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(js_repo, "add", "-A")
    _git(js_repo, "commit", "-q", "-m", "Initial commit")

    _git(js_repo, "checkout", "-q", "-b", "feature")
    format_js = js_repo / "src" / "utils" / "format.js"
    format_js.write_text(
        format_js.read_text()
        + "\nexport function formatPercent(n) {\n  return `${n}%`;\n}\n"
    )
    _git(js_repo, "commit", "-q", "-am", "Add percent formatting")
    return js_repo


@pytest.fixture
def run_git():
    """Run a git command in a repository, returning stdout."""
    return _git
