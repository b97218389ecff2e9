"""Per-directory snapshot repositories backed by git.

Each managed directory owns exactly one git repository rooted at the
directory itself. Finalising a directory commits its full tree; status
reports every difference since the last commit as drift records.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from enshrine.core.config import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME
from enshrine.core.errors import RepositoryError, TemplateError
from enshrine.core.tags import TagDictionary, TemplateRenderer
from enshrine.models.drift import DRIFT_KIND_ORDER, DriftKind, DriftRecord, DriftReport
from enshrine.utils.shell import CommandResult, run_command
from enshrine.utils.tree import FileTree

logger = logging.getLogger(__name__)

# Marker subdirectory identifying a repository root
REPOSITORY_MARKER = ".git"

# Rendered as templates; the directory path is appended afterwards, unrendered
FINALISE_MESSAGE = "Package {{ PackageNameAndVersion }} has finalised directory"
FALLBACK_MESSAGE = "Unknown package has finalised directory"

# File names that are not valid UTF-8 are reported with \x escapes
GIT_OUTPUT_ERRORS = "backslashreplace"


@dataclass(frozen=True, slots=True)
class SnapshotRepository:
    """A snapshot repository rooted at a managed directory."""

    path: Path

    @property
    def git_dir(self) -> Path:
        return self.path / REPOSITORY_MARKER


@dataclass(frozen=True, slots=True)
class Found:
    """Lookup result: the directory already has a repository."""

    repository: SnapshotRepository


@dataclass(frozen=True, slots=True)
class NotYetInitialized:
    """Lookup result: the directory has never been finalised."""

    path: Path


RepositoryLookup = Found | NotYetInitialized


class SnapshotStore:
    """Opens, commits and diffs snapshot repositories.

    Git runs isolated from the invoking user's configuration so that every
    commit carries only the configured author identity.

    Args:
        renderer: Renderer used to build commit messages. Without one,
            messages containing tags fall back to the generic message.
        author_name: Author and committer name for snapshots.
        author_email: Author and committer e-mail for snapshots.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL,
    ) -> None:
        self._renderer = renderer or TemplateRenderer(TagDictionary())
        self._author_name = author_name
        self._author_email = author_email

    def lookup(self, path: Path) -> RepositoryLookup:
        """Check whether path is a repository root."""
        path = Path(path)
        if (path / REPOSITORY_MARKER).is_dir():
            return Found(SnapshotRepository(path))
        return NotYetInitialized(path)

    def open(self, path: Path) -> SnapshotRepository:
        """Return the repository at path, initializing it if absent.

        Raises:
            RepositoryError: If the repository cannot be created.
        """
        result = self.lookup(path)
        if isinstance(result, Found):
            return result.repository

        logger.info("Initializing snapshot repository in %s", result.path)
        self._run(["init", "--quiet", str(result.path)])
        return SnapshotRepository(result.path)

    def commit(self, path: Path, message: str | None = None) -> str:
        """Record the full tree of path as a new snapshot.

        Args:
            path: Managed directory to snapshot.
            message: Message template. Defaults to the finalise message.
                If it cannot be rendered, a fallback naming the path is used.

        Returns:
            Identifier of the new commit.

        Raises:
            RepositoryError: On I/O failure while staging or committing.
        """
        repository = self.open(path)
        rendered = self._render_message(repository.path, message)

        self._run_in(repository, ["add", "--all", "."])
        self._run_in(
            repository,
            ["commit", "--quiet", "--allow-empty", "--no-verify", "-m", rendered],
        )
        head = self._run_in(repository, ["rev-parse", "HEAD"]).stdout.strip()
        logger.debug("Committed %s in %s", head, repository.path)
        return head

    def status(self, path: Path) -> DriftReport:
        """Report differences between path and its last snapshot.

        A directory that has never been finalised reports every file as
        untracked and is left untouched.

        Raises:
            RepositoryError: If the repository cannot be read.
        """
        result = self.lookup(path)
        if isinstance(result, NotYetInitialized):
            return self._untracked_report(result.path)

        repository = result.repository
        output = self._run_in(
            repository,
            [
                "status",
                "--porcelain=v1",
                "-z",
                "--untracked-files=all",
                "--ignore-submodules=all",
            ],
        ).stdout
        entries = parse_porcelain(output)
        records = [
            DriftRecord(kind=kind, repository=str(repository.path), file=file)
            for kind, file in _order_entries(entries)
        ]
        return DriftReport(records=tuple(records), repositories=(str(repository.path),))

    def _render_message(self, path: Path, message: str | None) -> str:
        try:
            if message is not None:
                return self._renderer.render(message)
            return f"{self._renderer.render(FINALISE_MESSAGE)} {path}"
        except TemplateError as e:
            logger.warning("Could not render commit message for %s: %s", path, e)
            return f"{FALLBACK_MESSAGE} {path}"

    def _untracked_report(self, path: Path) -> DriftReport:
        if not path.is_dir():
            return DriftReport()
        records = tuple(
            DriftRecord(kind=DriftKind.UNTRACKED, repository=str(path), file=node.relative)
            for node in FileTree(path, exclude=frozenset({REPOSITORY_MARKER})).files()
        )
        return DriftReport(records=records, repositories=(str(path),))

    def _git_env(self) -> dict[str, str]:
        return {
            "GIT_CONFIG_GLOBAL": os.devnull,
            "GIT_CONFIG_NOSYSTEM": "1",
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_AUTHOR_NAME": self._author_name,
            "GIT_AUTHOR_EMAIL": self._author_email,
            "GIT_COMMITTER_NAME": self._author_name,
            "GIT_COMMITTER_EMAIL": self._author_email,
        }

    def _run_in(self, repository: SnapshotRepository, args: list[str]) -> CommandResult:
        return self._run(
            [
                "--git-dir",
                str(repository.git_dir),
                "--work-tree",
                str(repository.path),
                *args,
            ],
            cwd=str(repository.path),
            action=args[0],
        )

    def _run(
        self,
        args: list[str],
        cwd: str | None = None,
        action: str | None = None,
    ) -> CommandResult:
        command = [
            "git",
            "-c",
            "safe.directory=*",
            "-c",
            "core.quotepath=off",
            "-c",
            "commit.gpgsign=false",
            "-c",
            "init.defaultBranch=main",
            *args,
        ]
        try:
            result = run_command(
                command,
                timeout=None,
                cwd=cwd,
                env=self._git_env(),
                errors=GIT_OUTPUT_ERRORS,
            )
        except FileNotFoundError as e:
            raise RepositoryError("git executable not found on PATH") from e
        except OSError as e:
            raise RepositoryError(f"Failed to run git: {e}") from e

        if not result.success:
            where = cwd or args[-1]
            raise RepositoryError(f"git {action or args[0]} failed in {where}: {result.detail}")
        return result


def parse_porcelain(output: str) -> set[tuple[DriftKind, str]]:
    """Parse ``git status --porcelain=v1 -z`` output into drift entries.

    A single path can produce two entries when both the index and the
    working tree differ (e.g. staged and then edited again).
    """
    entries: set[tuple[DriftKind, str]] = set()
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if len(token) < 4:
            continue
        index, worktree, file = token[0], token[1], token[3:]
        if index in "RC":
            # Renames and copies carry the original path as the next token
            i += 1

        if index == "?":
            entries.add((DriftKind.UNTRACKED, file))
            continue
        if index == "!":
            continue

        if index in "ARC":
            entries.add((DriftKind.ADDED, file))
        elif index in "MTU":
            entries.add((DriftKind.CHANGED, file))
        elif index == "D":
            entries.add((DriftKind.MISSING, file))

        if worktree in "MTU":
            entries.add((DriftKind.MODIFIED, file))
        elif worktree == "D":
            entries.add((DriftKind.MISSING, file))
    return entries


def _order_entries(entries: set[tuple[DriftKind, str]]) -> list[tuple[DriftKind, str]]:
    rank = {kind: position for position, kind in enumerate(DRIFT_KIND_ORDER)}
    return sorted(entries, key=lambda entry: (rank[entry[0]], entry[1]))
