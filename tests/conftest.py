"""Shared fixtures: real temporary git repositories."""

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

GitRunner = Callable[..., subprocess.CompletedProcess]


def _git(*args: str, cwd: Path | None = None, check: bool = True) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", *args], cwd=cwd, check=check, capture_output=True, text=True
    )


@pytest.fixture(autouse=True)
def clean_tool_env(monkeypatch) -> None:
    """Keep the caller's GWT_* overrides out of tests."""
    for tool in ("CLAUDE", "OPENCODE"):
        monkeypatch.delenv(f"GWT_{tool}_CMD", raising=False)
        monkeypatch.delenv(f"GWT_{tool}_ARGS", raising=False)


@pytest.fixture
def git() -> GitRunner:
    """Run a git command, raising on failure unless check=False."""
    return _git


@pytest.fixture
def temp_git_repo(tmp_path: Path, monkeypatch) -> Path:
    """Create a repository on 'main' with one commit and chdir into it."""
    repo = tmp_path / "repo"
    repo.mkdir()
    repo = repo.resolve()

    _git("init", cwd=repo)
    _git("symbolic-ref", "HEAD", "refs/heads/main", cwd=repo)
    _git("config", "user.email", "test@example.com", cwd=repo)
    _git("config", "user.name", "Test User", cwd=repo)
    _git("config", "commit.gpgsign", "false", cwd=repo)

    (repo / "README.md").write_text("initial\n")
    _git("add", "README.md", cwd=repo)
    _git("commit", "-m", "initial commit", cwd=repo)

    monkeypatch.chdir(repo)
    return repo


@pytest.fixture
def workspace(temp_git_repo: Path) -> Path:
    """Workspace root of temp_git_repo (not created)."""
    return temp_git_repo / ".git" / "worktree-workspace"


@pytest.fixture
def commit_file(git: GitRunner) -> Callable[..., None]:
    """Write a file and commit it in the given checkout."""

    def _commit(checkout: Path, name: str, content: str, message: str = "update") -> None:
        (checkout / name).write_text(content)
        git("add", name, cwd=checkout)
        git("commit", "-m", message, cwd=checkout)

    return _commit
