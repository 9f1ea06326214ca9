"""Reading failed test cases from xUnit XML result files."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from os import PathLike
from pathlib import Path


@dataclass
class Skipped:
    """Marker for a skipped test case."""

    message: str = ""


@dataclass
class TestCase:
    """A single test case as recorded in an xUnit report."""

    __test__ = False

    name: str = ""
    class_name: str = ""
    time_in_seconds: float = 0.0
    error: str = ""
    failure: str = ""
    skipped: Skipped | None = None

    def __str__(self) -> str:
        return f"{self.name} in {self.class_name}"

    def package_name(self) -> str:
        """The package part of the class name."""
        return self.class_name.split(".")[0]

    def data_stream(self) -> str:
        """The data stream part of the class name, or "" if there is none."""
        parts = self.class_name.split(".")
        return parts[1] if len(parts) == 2 else ""


def _element_text(element: ET.Element | None) -> str:
    if element is None:
        return ""
    return "".join(element.itertext())


def _parse_case(element: ET.Element, path: Path) -> TestCase:
    raw_time = element.get("time")
    try:
        seconds = float(raw_time) if raw_time is not None else 0.0
    except ValueError as exc:
        raise ValueError(
            f"failed to unmarshal file {path}: invalid time {raw_time!r}"
        ) from exc

    skipped_element = element.find("skipped")
    skipped = (
        Skipped(message=skipped_element.get("message", ""))
        if skipped_element is not None
        else None
    )
    return TestCase(
        name=element.get("name", ""),
        class_name=element.get("classname", ""),
        time_in_seconds=seconds,
        error=_element_text(element.find("error")),
        failure=_element_text(element.find("failure")),
        skipped=skipped,
    )


def test_failures(path: str | PathLike[str]) -> list[TestCase]:
    """Return the failed or errored test cases of the top-level suites in a report.

    A case that has both a failure and an error is listed twice.
    """
    path = Path(path)
    contents = path.read_bytes()
    try:
        root = ET.fromstring(contents)
    except ET.ParseError as exc:
        raise ValueError(f"failed to unmarshal file {path}: {exc}") from exc
    if root.tag != "testsuites":
        raise ValueError(
            f"failed to unmarshal file {path}: expected element <testsuites> but have <{root.tag}>"
        )

    failures: list[TestCase] = []
    for suite in root.findall("testsuite"):
        for element in suite.findall("testcase"):
            case = _parse_case(element, path)
            if case.failure:
                failures.append(case)
            if case.error:
                failures.append(case)
    return failures


test_failures.__test__ = False  # type: ignore[attr-defined]