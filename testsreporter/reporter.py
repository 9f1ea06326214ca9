"""Creating or updating issues for failures, keeping track of build links."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from testsreporter.format import ResultsFormatter
from testsreporter.github import GhCli
from testsreporter.issue import GithubIssue
from testsreporter.links import ErrorLinks, FailureObserver

_FIRST_BUILD_RE = re.compile(
    r"First build failed: (?P<url>https://buildkite\.com/elastic/integrations(-serverless)?/builds/\d+)",
    re.ASCII,
)
_CLOSED_ISSUE_RE = re.compile(
    r"Latest issue closed for the same test: (?P<url>https://github\.com/elastic/integrations/issues/\d+)",
    re.ASCII,
)
_PREVIOUS_BUILD_RE = re.compile(
    r"- (?P<url>https://buildkite\.com/elastic/integrations(-serverless)?/builds/\d+)",
    re.ASCII,
)


class DescriptionError(ValueError):
    """An issue description does not hold the expected links."""


def _urls(pattern: re.Pattern[str], description: str) -> list[str]:
    return [match.group("url") for match in pattern.finditer(description)]


def first_build_link_from_description(description: str) -> str:
    """The single first-build link of a description."""
    links = _urls(_FIRST_BUILD_RE, description)
    if len(links) != 1:
        raise DescriptionError(
            f"incorrect number of links found for the first build: {len(links)}"
        )
    return links[0]


def closed_issue_from_description(description: str) -> str:
    """The closed issue link of a description, or "" if there is none."""
    links = _urls(_CLOSED_ISSUE_RE, description)
    if len(links) > 1:
        raise DescriptionError(
            f"incorrect number of issues found for the previous closed issue: {len(links)}"
        )
    return links[0] if links else ""


def previous_build_links_from_description(description: str) -> list[str]:
    """All listed build links of a description, in order."""
    return _urls(_PREVIOUS_BUILD_RE, description)


def update_previous_links(
    previous_links: list[str], current_build: str, max_previous_links: int
) -> list[str]:
    """Append the current build and keep only the latest max_previous_links."""
    links = [*previous_links, current_build]
    if len(links) > max_previous_links:
        links = links[len(links) - max_previous_links:]
    return links


@dataclass
class Reporter:
    """Reports failures as issues, reusing an open issue when there is one."""

    gh_cli: GhCli
    max_previous_links: int = 0
    verbose: bool = False

    def report(self, issue: GithubIssue, result: FailureObserver) -> None:
        """Create or update the issue for a failure."""
        links, next_issue = self.update_links(issue, result.first_build())
        result.update_links(links)

        formatter = ResultsFormatter(result, self.max_previous_links)
        description = formatter.description()
        summary = formatter.summary()

        next_issue.description = description
        next_issue.add_labels(result.labels())

        print()
        print("---- Issue ----")
        print(f"Title: {json.dumps(formatter.title())}")
        print(f"Teams: {json.dumps(', '.join(formatter.owners()))}")
        print(f"Labels: {', '.join(next_issue.labels)}")
        print(f"Summary:\n{summary}", end="")
        print("----")
        print()
        if self.verbose:
            print("---- Full Description ----")
            print(description, end="")
            print("----")
            print()

        self._create_or_update(next_issue)

    def _create_or_update(self, issue: GithubIssue) -> None:
        if issue.number == 0:
            print("Issue not found, creating a new one...")
            self.gh_cli.create(issue)
            return
        print(f"Updating issue {issue.url}...")
        self.gh_cli.update(issue)

    def update_links(
        self, issue: GithubIssue, current_build: str
    ) -> tuple[ErrorLinks, GithubIssue]:
        """Links for the failure and the issue to write, based on any open issue."""
        links = ErrorLinks(first_build=current_build)
        previous = self.gh_cli.exists(issue, True)

        if previous is None:
            print("No open issue found for this error.")
            closed = self.gh_cli.exists(issue, False)
            links.closed_issue_url = closed.url if closed is not None else ""
            return links, issue

        print(f"Found existing open issue: {previous.url}")
        links.current_issue_url = previous.url

        try:
            first_build = first_build_link_from_description(previous.description)
        except DescriptionError as exc:
            raise DescriptionError(
                f"failed to read first link from issue (title: {issue.title}): {exc}"
            ) from exc
        print(f"First build found: {first_build}")
        links.first_build = first_build

        try:
            links.closed_issue_url = closed_issue_from_description(previous.description)
        except DescriptionError as exc:
            raise DescriptionError(
                f"failed to read closed issue from issue (title: {issue.title}): {exc}"
            ) from exc

        if first_build == current_build:
            print("First time failing, no need to update previous build links.")
        else:
            links.previous_builds = update_previous_links(
                previous_build_links_from_description(previous.description),
                current_build,
                self.max_previous_links,
            )
        return links, previous