"""Git backend — clone, fast-forward, and inspect a working copy with GitPython."""

from __future__ import annotations

from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.cmd import Git

from ctoldup.errors import VcsError


class GitClient:
    """Keeps ``path`` checked out at branch or tag ``tag`` of ``url``."""

    metadata_dir = ".git"

    def __init__(self, url: str, tag: str, path: str | Path):
        self.url = url
        self.tag = tag
        self.path = Path(path)

    @property
    def remote(self) -> str:
        return f"{self.url}@{self.tag}" if self.tag else self.url

    def ping(self) -> bool:
        try:
            Git().ls_remote(self.url)
        except GitCommandError:
            return False
        return True

    def has_local_copy(self) -> bool:
        try:
            Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            return False
        return True

    def checkout(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        kwargs = {"branch": self.tag} if self.tag else {}
        try:
            Repo.clone_from(self.url, self.path, **kwargs)
        except GitCommandError as e:
            raise VcsError(f"clone failed: {e}") from e

    def update(self) -> None:
        try:
            repo = Repo(self.path)
            origin = repo.remotes.origin
            origin.fetch(tags=True)
            if not self.tag:
                repo.git.merge("--ff-only")
                return
            remote_branches = {ref.remote_head for ref in origin.refs}
            repo.git.checkout(self.tag)
            if self.tag in remote_branches:
                repo.git.merge("--ff-only", f"origin/{self.tag}")
        except (GitCommandError, InvalidGitRepositoryError, AttributeError) as e:
            raise VcsError(f"update failed: {e}") from e

    def current_revision(self) -> str:
        try:
            return Repo(self.path).head.commit.hexsha
        except (InvalidGitRepositoryError, NoSuchPathError, ValueError) as e:
            raise VcsError(f"cannot read revision of {self.path}: {e}") from e

    def local_path(self) -> Path:
        return self.path
