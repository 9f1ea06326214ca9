"""An issue on the tracker."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GithubIssue:
    """An issue in a repository, possibly not yet created (number 0)."""

    repository: str = ""
    number: int = 0
    title: str = ""
    description: str = ""
    labels: list[str] = field(default_factory=list)
    state: str = ""
    url: str = ""

    def is_open(self) -> bool:
        """Whether the issue is open."""
        return self.state == "OPEN"

    def add_labels(self, labels: list[str] | None) -> None:
        """Append labels to the issue."""
        self.labels.extend(labels or [])