"""Failures that are reported as issues: single test cases or whole builds."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from testsreporter.format import DEFAULT_MAX_LENGTH_MESSAGES, truncate_text
from testsreporter.links import DataError, ErrorLinks
from testsreporter.xunit import TestCase

BUILD_REPORTING_TEAM = "@elastic/ecosystem"
BUILD_REPORTING_TEAM_LABEL = "Team:Ecosystem"

OwnersResolver = Callable[[str, str], Iterable[str]]


class OwnersNotFoundError(LookupError):
    """The owners of a package could not be determined."""


@dataclass
class BuildError:
    """Too many packages failed in one build to report them one by one."""

    data: DataError = field(default_factory=DataError)
    packages: list[str] = field(default_factory=list)
    teams: list[str] = field(default_factory=lambda: [BUILD_REPORTING_TEAM])

    def __str__(self) -> str:
        return f"{self.data.prefix()}Too many packages failing in daily job"

    def first_build(self) -> str:
        return self.data.links.first_build

    def update_links(self, links: ErrorLinks) -> None:
        self.data.links = links

    def summary_data(self) -> dict[str, Any]:
        data = self.data.data()
        data["packages"] = self.packages
        data["owners"] = self.teams
        return data

    def description_data(self) -> dict[str, Any]:
        data = self.summary_data()
        data.update(self.data.links.data())
        return data

    def labels(self) -> list[str]:
        return [BUILD_REPORTING_TEAM_LABEL]


@dataclass
class PackageError:
    """A failing test case of one package."""

    test_case: TestCase = field(default_factory=TestCase)
    data: DataError = field(default_factory=DataError)
    teams: list[str] = field(default_factory=list)
    package_name: str = ""
    data_stream: str = ""

    @classmethod
    def from_test_case(
        cls,
        test_case: TestCase,
        data: DataError | None = None,
        teams: Iterable[str] | None = None,
        owners_resolver: OwnersResolver | None = None,
    ) -> PackageError:
        """Build the error for a test case, resolving owners when no teams are given."""
        package_name = test_case.package_name()
        data_stream = test_case.data_stream()
        resolved = list(teams or [])
        if not resolved:
            if owners_resolver is None:
                raise OwnersNotFoundError(
                    f"failed to find owners for package {package_name}: no owners resolver"
                )
            try:
                resolved = list(owners_resolver(package_name, data_stream))
            except OwnersNotFoundError:
                raise
            except (LookupError, ValueError, OSError) as exc:
                raise OwnersNotFoundError(
                    f"failed to find owners for package {package_name}: {exc}"
                ) from exc
        return cls(
            test_case=test_case,
            data=data if data is not None else DataError(),
            teams=resolved,
            package_name=package_name,
            data_stream=data_stream,
        )

    def __str__(self) -> str:
        return (
            f"{self.data.prefix()}[{self.package_name}] "
            f"Failing test daily: {self.test_case}"
        )

    def first_build(self) -> str:
        return self.data.links.first_build

    def update_links(self, links: ErrorLinks) -> None:
        self.data.links = links

    def summary_data(self) -> dict[str, Any]:
        data = self.data.data()
        data["packageName"] = self.package_name
        data["testName"] = self.test_case.name
        data["dataStream"] = self.data_stream
        data["owners"] = self.teams
        return data

    def description_data(self) -> dict[str, Any]:
        data = self.summary_data()
        data.update(self.data.links.data())
        data["failure"] = truncate_text(self.test_case.failure, DEFAULT_MAX_LENGTH_MESSAGES)
        data["error"] = truncate_text(self.test_case.error, DEFAULT_MAX_LENGTH_MESSAGES)
        return data

    def labels(self) -> list[str]:
        return []