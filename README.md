# testsreporter

Turn failing xUnit test results from a daily CI run into issues that keep
track of how often a test has failed.

The package walks a folder of xUnit XML result files, collects every test
case that reported a failure or an error, works out the package and data
stream it belongs to, and reports one issue per failing test. When an open
issue with the same title already exists, its description is rewritten
instead: the first failing build is kept, the current build is appended to the
list of latest failed builds (capped at a configurable number), and a link to
the most recently closed issue with the same title is carried along.

When more tests fail than the configured maximum, a single issue describing
the broad failure, listing the affected packages, is reported instead.

## Installation

```
pip install testsreporter
```

The package has no runtime dependencies.

## Usage

Tracker commands go through a `CommandRunner`: any object with a
`run(args)` method that carries out an issue-tracker client command (listing,
creating or editing issues), returns what it printed, and raises
`testsreporter.github.CommandError` when it fails. Listing expects a JSON
array of issues with `title`, `body`, `number`, `labels`, `state`, `url` and
`closedAt` fields.

Owners of a package are found through an `owners_resolver`: a callable taking
a package name and a data stream and returning the teams that own it. If no
resolver is given, or it raises `LookupError`, `ValueError` or `OSError`,
`testsreporter.failures.OwnersNotFoundError` is raised.

```python
from testsreporter.check import CheckOptions, check

options = CheckOptions(
    stack_version="8.16.0-SNAPSHOT",
    build_url="https://ci.example.com/builds/100",
    max_previous_links=5,
    max_tests_reported=20,
    dry_run=True,
)

check("build/test-results/", options, runner=my_runner, owners_resolver=my_resolver)
```

With `dry_run=True`, only issue listing is passed to the runner; create and
edit commands are logged and skipped. Progress and a short summary of each
issue are printed to standard output; `verbose=True` also prints the full
description.

When reporting individual tests, errors from single reports are collected and
raised together as one `RuntimeError` once every failing test has been
processed.

### Building blocks

- `testsreporter.xunit.test_failures(path)` reads one xUnit file and returns
  the failing `TestCase` objects (a case with both a failure and an error is
  listed twice); `TestCase.package_name()` and `TestCase.data_stream()` split
  the class name at dots.
- `testsreporter.check.errors_from_tests(...)` returns a `PackageError` for
  every failing case in a folder; `packages_from_tests(...)` returns the
  sorted names of the failing packages; `create_initial_issue(...)` builds a
  not-yet-created `GithubIssue` labelled `flaky-test` and `automation`.
- `testsreporter.failures.PackageError` and `BuildError` describe a single
  failing test and a broad build failure; `BuildError` adds the
  `Team:Ecosystem` label.
- `testsreporter.format.ResultsFormatter` renders the title, summary and
  description of an issue; `truncate_text` shortens long messages at the last
  separator before the limit (error and failure texts are cut at 1000
  characters).
- `testsreporter.reporter.Reporter` looks up existing issues through
  `testsreporter.github.GhCli` and creates or updates them.
- `update_previous_links`, `first_build_link_from_description`,
  `closed_issue_from_description` and `previous_build_links_from_description`
  in `testsreporter.reporter` read and maintain the build history kept in an
  issue description. A description whose first-build link is missing or
  repeated raises `testsreporter.reporter.DescriptionError`.

## What it does not do

- There is no command-line program; call `check` from your own code.
- No tracker client is included: you supply the `CommandRunner`.
- Ownership files are not read: you supply the `owners_resolver`.
- Options are not read from the environment; fill in `CheckOptions` yourself.
- Links are read back from issue descriptions by fixed patterns in
  `testsreporter.reporter`; build and issue URLs that do not match them are
  not recognised when an existing issue is updated.

## Running the tests

```
pip install -e ".[test]"
pytest
```