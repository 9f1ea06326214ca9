"""Rendering of issue titles, summaries and descriptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from testsreporter.links import FailureObserver

DEFAULT_MAX_LENGTH_MESSAGES = 1000

_SAME_AS_PR = "Same as in Pull Request builds"
_LOGSDB_STACK = (
    "maximum of either the version used in PR builds or 8.17.0 "
    "(GA version for LogsDB index mode)"
)
_TRUNCATE_SEPARATORS = " ,.;:-}"
_FENCE = "```"


def truncate_text(message: str, max_length: int) -> str:
    """Cut a message at the last separator before max_length."""
    if len(message) <= max_length:
        return message
    head = message[:max_length]
    cut = max(head.rfind(sep) for sep in _TRUNCATE_SEPARATORS)
    return message[:cut] if cut >= 0 else head


def _bullet_list(title: str, items: list[str]) -> list[str]:
    return [f"- {title}:", *(f"    - {item}" for item in items)]


def _render_summary(data: dict[str, Any]) -> str:
    if data.get("stackVersion"):
        stack = data["stackVersion"]
    elif data.get("logsDB"):
        stack = _LOGSDB_STACK
    else:
        stack = _SAME_AS_PR
    lines = [f"- Stack version: {stack}"]
    if data.get("serverless"):
        lines.append(f"- Serverless: {data.get('serverlessProject', '')}")
    if data.get("logsDB"):
        lines.append("- LogsDB: enabled")
    if data.get("subscription"):
        lines.append(f"- Subscription: {data['subscription']}")
    if data.get("packageName"):
        lines.append(f"- Package: {data['packageName']}")
    if data.get("testName"):
        lines.append(f"- Failing test: {data['testName']}")
    if data.get("dataStream"):
        lines.append(f"- DataStream: {data['dataStream']}")
    if data.get("packages"):
        lines.extend(_bullet_list("Packages", data["packages"]))
    if data.get("owners"):
        lines.extend(_bullet_list("Owners", data["owners"]))
    return "".join(f"{line}\n" for line in lines)


def _render_description(data: dict[str, Any]) -> str:
    parts = [data.get("summary", "")]
    if "failure" in data or "error" in data:
        for label, key in (("Failure", "failure"), ("Error", "error")):
            if data.get(key):
                parts.append(f"\n{label}:\n{_FENCE}\n{data[key]}\n{_FENCE}\n")
    else:
        parts.append("\n\n")
    if data.get("closedIssueURL"):
        parts.append(f"\nLatest issue closed for the same test: {data['closedIssueURL']}\n")
    if data.get("firstBuild"):
        parts.append(f"\nFirst build failed: {data['firstBuild']}\n")
    previous = data.get("previousBuilds") or []
    if previous:
        limit = data.get("maxPreviousLinks")
        header = f"Latest {limit} failed builds:" if limit else "Latest failed builds:"
        parts.append(f"\n{header}\n" + "".join(f"- {link}\n" for link in previous))
    return "".join(parts)


@dataclass
class ResultsFormatter:
    """Formats a failure into the parts of an issue."""

    result: FailureObserver
    max_previous_links: int = 0

    def title(self) -> str:
        return str(self.result)

    def owners(self) -> list[str]:
        return self.result.teams

    def summary(self) -> str:
        return _render_summary(self.result.summary_data())

    def description(self) -> str:
        data = self.result.description_data()
        data["summary"] = self.summary()
        data["maxPreviousLinks"] = self.max_previous_links
        return _render_description(data)