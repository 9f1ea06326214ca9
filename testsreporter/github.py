"""Issue tracker access through a command-line client."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from testsreporter.issue import GithubIssue

logger = logging.getLogger(__name__)

_LIST_FIELDS = "title,body,number,labels,state,url,createdAt,closedAt"
_LIST_FILTER = "map(select((.labels | length) > 0))| map(.labels = (.labels | map(.name)))"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CommandError(RuntimeError):
    """A command run for the issue tracker failed."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class CommandRunner(Protocol):
    """Runs a tracker client command and returns what it printed."""

    def run(self, args: Sequence[str]) -> str:
        """Run the command; raise CommandError if it fails."""
        ...


def _parse_time(value: Any) -> datetime:
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal list of issues: invalid time {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class GhCli:
    """Lists, creates and updates issues through a command runner."""

    runner: CommandRunner
    dry_run: bool = False

    def _run(self, args: list[str]) -> str:
        logger.info("Running command: %s", " ".join(args[:4]))
        if self.dry_run and args[:2] != ["issue", "list"]:
            logger.info("DRY-RUN> not run command")
            return ""
        return self.runner.run(args)

    def exists(self, issue: GithubIssue, open_: bool) -> GithubIssue | None:
        """Find an issue with the same title, open or closed; None if there is none."""
        state = "open" if open_ else "closed"
        args = [
            "issue",
            "list",
            "--json",
            _LIST_FIELDS,
            "--repo",
            issue.repository,
            "--search",
            f"{issue.title} in:title sort:created-desc",
            "--limit",
            "1000",
            "--jq",
            _LIST_FILTER,
            "--state",
            state,
        ]
        try:
            stdout = self._run(args)
        except CommandError as exc:
            raise CommandError(f"failed to list issues: {exc}\n{exc.stderr}", exc.stderr) from exc

        try:
            items = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise ValueError(f"failed to unmarshal list of issues: {exc}") from exc
        if not isinstance(items, list):
            raise ValueError("failed to unmarshal list of issues: expected a list")

        if not open_:
            # The tracker cannot sort by closing time, so do it here.
            items = sorted(items, key=lambda item: _parse_time(item.get("closedAt")), reverse=True)

        for item in items:
            if item.get("title", "") == issue.title:
                return GithubIssue(
                    repository=issue.repository,
                    number=int(item.get("number") or 0),
                    title=item.get("title", ""),
                    description=item.get("body") or "",
                    labels=list(item.get("labels") or []),
                    state=item.get("state") or "",
                    url=item.get("url") or "",
                )
        return None

    def create(self, issue: GithubIssue) -> None:
        """Create the issue."""
        args = [
            "issue",
            "create",
            "--title",
            issue.title,
            "--body",
            issue.description,
            "--repo",
            issue.repository,
        ]
        for label in issue.labels:
            args.extend(["--label", label])
        try:
            stdout = self._run(args)
        except CommandError as exc:
            raise CommandError(f"failed to create issue: {exc}\n{exc.stderr}", exc.stderr) from exc
        print("Created issue:", stdout)

    def update(self, issue: GithubIssue) -> None:
        """Replace the description of an existing issue."""
        args = [
            "issue",
            "edit",
            str(issue.number),
            "--body",
            issue.description,
            "--repo",
            issue.repository,
        ]
        try:
            self._run(args)
        except CommandError as exc:
            raise CommandError(f"failed to update issue: {exc}\n{exc.stderr}", exc.stderr) from exc