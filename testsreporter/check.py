"""Reporting the failures of a directory of xUnit results as issues."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from testsreporter.failures import BuildError, OwnersResolver, PackageError
from testsreporter.format import ResultsFormatter
from testsreporter.github import CommandError, CommandRunner, GhCli
from testsreporter.issue import GithubIssue
from testsreporter.links import DataError, ErrorLinks, FailureObserver
from testsreporter.reporter import DescriptionError, Reporter
from testsreporter.xunit import test_failures

_REPOSITORY = "elastic/integrations"
_INITIAL_LABELS = ("flaky-test", "automation")


@dataclass
class CheckOptions:
    """Settings for a reporting run."""

    serverless: bool = False
    serverless_project: str = ""
    logs_db: bool = False
    stack_version: str = ""
    subscription: str = ""
    build_url: str = ""
    max_previous_links: int = 5
    max_tests_reported: int = 20
    dry_run: bool = False
    verbose: bool = False

    def data_error(self) -> DataError:
        """A fresh environment description for one failure."""
        return DataError(
            serverless=self.serverless,
            serverless_project=self.serverless_project,
            logs_db=self.logs_db,
            stack_version=self.stack_version,
            subscription=self.subscription,
            links=ErrorLinks(first_build=self.build_url),
        )


def _xml_files(root: Path) -> Iterator[Path]:
    if root.is_dir() and not root.is_symlink():
        for child in sorted(root.iterdir(), key=lambda p: p.name):
            yield from _xml_files(child)
    elif root.suffix == ".xml":
        yield root


def _walk_results(results_path: str | PathLike[str]) -> Iterator[Path]:
    root = Path(results_path)
    if not root.exists() and not root.is_symlink():
        raise FileNotFoundError(f"failed to look for errors: no such path {root}")
    yield from _xml_files(root)


def errors_from_tests(
    results_path: str | PathLike[str],
    options: CheckOptions,
    owners_resolver: OwnersResolver | None = None,
) -> list[PackageError]:
    """One PackageError per failing test case in the result files, in file order."""
    return [
        PackageError.from_test_case(
            case, data=options.data_error(), owners_resolver=owners_resolver
        )
        for path in _walk_results(results_path)
        for case in test_failures(path)
    ]


def packages_from_tests(results_path: str | PathLike[str]) -> list[str]:
    """Sorted names of the packages whose result files hold failures."""
    packages = []
    for path in _walk_results(results_path):
        cases = test_failures(path)
        if cases:
            packages.append(cases[0].package_name())
    return sorted(packages)


def create_initial_issue(result: FailureObserver, max_previous_links: int) -> GithubIssue:
    """A new, not yet created issue for a failure."""
    formatter = ResultsFormatter(result, max_previous_links)
    return GithubIssue(
        title=formatter.title(),
        description=formatter.description(),
        labels=list(_INITIAL_LABELS),
        repository=_REPOSITORY,
    )


def check(
    results_path: str | PathLike[str],
    options: CheckOptions,
    runner: CommandRunner,
    owners_resolver: OwnersResolver | None = None,
) -> None:
    """Report every failing test, or the whole build when too many tests fail."""
    if options.dry_run:
        print("DRY_RUN mode enabled")

    print("path: ", os.fspath(results_path))
    package_errors = errors_from_tests(results_path, options, owners_resolver)

    reporter = Reporter(
        GhCli(runner, dry_run=options.dry_run),
        max_previous_links=options.max_previous_links,
        verbose=options.verbose,
    )

    if len(package_errors) > options.max_tests_reported:
        print(
            "Skip creating GitHub issues, hit the maximum number "
            f"({options.max_tests_reported}) of tests to be reported. "
            f"Total failing tests: {len(package_errors)}."
        )
        build_error = BuildError(
            data=options.data_error(), packages=packages_from_tests(results_path)
        )
        issue = create_initial_issue(build_error, options.max_previous_links)
        reporter.report(issue, build_error)
        return

    failures: list[Exception] = []
    for package_error in package_errors:
        issue = create_initial_issue(package_error, options.max_previous_links)
        try:
            reporter.report(issue, package_error)
        except (CommandError, DescriptionError, ValueError) as exc:
            failures.append(exc)
    if failures:
        raise RuntimeError("\n".join(str(exc) for exc in failures)) from failures[0]