"""Links and environment data attached to a reported failure."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class ErrorLinks:
    """Links to builds and issues related to a failure."""

    current_issue_url: str = ""
    first_build: str = ""
    previous_builds: list[str] = field(default_factory=list)
    closed_issue_url: str = ""

    def data(self) -> dict[str, Any]:
        """Template data for the links."""
        return {
            "firstBuild": self.first_build,
            "closedIssueURL": self.closed_issue_url,
            "previousBuilds": list(self.previous_builds),
        }


@dataclass
class DataError:
    """The environment a failure happened in."""

    serverless: bool = False
    serverless_project: str = ""
    logs_db: bool = False
    stack_version: str = ""
    subscription: str = ""
    links: ErrorLinks = field(default_factory=ErrorLinks)

    def prefix(self) -> str:
        """Title prefix describing the environment."""
        parts = []
        if self.logs_db:
            parts.append("[LogsDB] ")
        if self.serverless:
            parts.append(f"[Serverless {self.serverless_project}] ")
        if self.stack_version:
            parts.append(f"[Stack {self.stack_version}] ")
        if self.subscription:
            parts.append(f"[Subscription {self.subscription}] ")
        return "".join(parts)

    def data(self) -> dict[str, Any]:
        """Template data for the environment."""
        return {
            "stackVersion": self.stack_version,
            "serverless": self.serverless,
            "serverlessProject": self.serverless_project,
            "logsDB": self.logs_db,
            "subscription": self.subscription,
        }


class FailureObserver(Protocol):
    """A failure that can be reported as an issue."""

    teams: list[str]

    def first_build(self) -> str: ...

    def update_links(self, links: ErrorLinks) -> None: ...

    def summary_data(self) -> dict[str, Any]: ...

    def description_data(self) -> dict[str, Any]: ...

    def labels(self) -> list[str]: ...

    def __str__(self) -> str: ...