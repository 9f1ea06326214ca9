from xml.sax.saxutils import escape, quoteattr

import pytest

from testsreporter.check import (
    CheckOptions,
    check,
    create_initial_issue,
    errors_from_tests,
    packages_from_tests,
)
from testsreporter.failures import OwnersNotFoundError, PackageError
from testsreporter.github import CommandError
from testsreporter.links import DataError, ErrorLinks
from testsreporter.xunit import TestCase

OWNERS = {
    "cisco_umbrella": ["@elastic/security-service-integrations"],
    "elastic_package_registry": ["@elastic/ecosystem"],
    "fortinet_fortigate": ["@elastic/sec-deployment-and-devices"],
    "sql_input": ["@elastic/obs-infraobs-integrations"],
}


def resolve_owners(package, data_stream):
    try:
        return OWNERS[package]
    except KeyError:
        raise OwnersNotFoundError(f"package {package} not found") from None


FORTINET_FAILURE = """test case failed: Expected results are different from actual ones: --- want
+++ got
@@ -2302,7 +2302,6 @@
                 "preserve_original_event"
             ],
             "url": {
-                "extension": "fortianalyzer/setting",
                 "path": "/api/v2/cmdb/log.fortianalyzer/setting",
                 "query": "vdom=root"
             }
"""
MSSQL_FAILURE = (
    "one or more errors found in documents stored in metrics-sql.sql-12466 data stream: "
    "[0] found error.message in event: cannot open connection: testing connection: "
    "mssql: login error: Login failed for user 'SA'."
)
MYSQL_FAILURE = (
    "one or more errors found in documents stored in metrics-sql.sql-98584 data stream: "
    "[0] found error.message in event: cannot open connection: testing connection: "
    "dial tcp 172.21.0.6:3306: connect: connection refused"
)


def case_xml(name, classname, time, failure="", error=""):
    body = ""
    if failure:
        body += f"<failure>{escape(failure)}</failure>"
    if error:
        body += f"<error>{escape(error)}</error>"
    return f"<testcase name={quoteattr(name)} classname={quoteattr(classname)} time=\"{time}\">{body}</testcase>"


def report(*cases):
    return "<testsuites><testsuite name=\"suite\">" + "".join(cases) + "</testsuite></testsuites>"


@pytest.fixture
def results(tmp_path):
    (tmp_path / "a_cisco.xml").write_text(report(
        case_xml("system test: default", "cisco_umbrella.log", "1368.349501429",
                 failure="could not find hits in logs-cisco_umbrella.log-ep data stream"),
    ))
    (tmp_path / "b_registry.xml").write_text(report(
        case_xml("system test: default", "elastic_package_registry.metrics", "1368.349501429",
                 error="could not find hits in logs-elastic_package_registry.metrics-ep data stream"),
    ))
    nested = tmp_path / "c_nested"
    nested.mkdir()
    (nested / "fortinet.xml").write_text(report(
        case_xml("pipeline test: test-fortinet-7-4.log", "fortinet_fortigate.log", "0.209966522",
                 failure=FORTINET_FAILURE),
    ))
    (tmp_path / "d_sql.xml").write_text(report(
        case_xml("system test: mssql", "sql_input.", "34.296986222", failure=MSSQL_FAILURE),
        case_xml("system test: mysql", "sql_input.", "34.25843055", failure=MYSQL_FAILURE),
    ))
    (tmp_path / "e_passing.xml").write_text(report(case_xml("ok", "nginx.access", "1.0")))
    (tmp_path / "notes.txt").write_text("not a report")
    return tmp_path


def expected_error(name, classname, time, teams, package, data_stream, failure="", error=""):
    return PackageError(
        test_case=TestCase(name=name, class_name=classname, time_in_seconds=time,
                           failure=failure, error=error),
        data=DataError(links=ErrorLinks(first_build="")),
        teams=teams,
        package_name=package,
        data_stream=data_stream,
    )


def test_errors_from_tests(results):
    errors = errors_from_tests(results, CheckOptions(), resolve_owners)
    assert errors == [
        expected_error("system test: default", "cisco_umbrella.log", 1368.349501429,
                       ["@elastic/security-service-integrations"], "cisco_umbrella", "log",
                       failure="could not find hits in logs-cisco_umbrella.log-ep data stream"),
        expected_error("system test: default", "elastic_package_registry.metrics", 1368.349501429,
                       ["@elastic/ecosystem"], "elastic_package_registry", "metrics",
                       error="could not find hits in logs-elastic_package_registry.metrics-ep data stream"),
        expected_error("pipeline test: test-fortinet-7-4.log", "fortinet_fortigate.log", 0.209966522,
                       ["@elastic/sec-deployment-and-devices"], "fortinet_fortigate", "log",
                       failure=FORTINET_FAILURE),
        expected_error("system test: mssql", "sql_input.", 34.296986222,
                       ["@elastic/obs-infraobs-integrations"], "sql_input", "", failure=MSSQL_FAILURE),
        expected_error("system test: mysql", "sql_input.", 34.25843055,
                       ["@elastic/obs-infraobs-integrations"], "sql_input", "", failure=MYSQL_FAILURE),
    ]


def test_error_data_streams(results):
    errors = errors_from_tests(results, CheckOptions(), resolve_owners)
    assert [e.data_stream for e in errors] == ["log", "metrics", "log", "", ""]


def test_error_package_names(results):
    errors = errors_from_tests(results, CheckOptions(), resolve_owners)
    assert [e.package_name for e in errors] == [
        "cisco_umbrella", "elastic_package_registry", "fortinet_fortigate", "sql_input", "sql_input",
    ]


def test_errors_carry_options(results):
    options = CheckOptions(serverless=True, serverless_project="security",
                           build_url="https://buildkite.com/elastic/integrations/builds/7")
    errors = errors_from_tests(results, options, resolve_owners)
    assert all(e.data.serverless_project == "security" for e in errors)
    assert errors[0].first_build() == "https://buildkite.com/elastic/integrations/builds/7"
    assert errors[0].data.links is not errors[1].data.links


def test_errors_unknown_owner(tmp_path):
    (tmp_path / "x.xml").write_text(report(case_xml("t", "notexist.datastream", "1", error="boom")))
    with pytest.raises(OwnersNotFoundError):
        errors_from_tests(tmp_path, CheckOptions(), resolve_owners)


def test_errors_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        errors_from_tests(tmp_path / "missing", CheckOptions(), resolve_owners)


def test_packages_from_tests(results):
    assert packages_from_tests(results) == [
        "cisco_umbrella", "elastic_package_registry", "fortinet_fortigate", "sql_input",
    ]


def test_create_initial_issue():
    error = PackageError.from_test_case(
        TestCase(name="mytest", class_name="foo.data", error="myerror"),
        data=DataError(stack_version="8.14", links=ErrorLinks(first_build="http://link/1")),
        teams=["team1"],
    )
    issue = create_initial_issue(error, 5)
    assert issue.title == "[Stack 8.14] [foo] Failing test daily: mytest in foo.data"
    assert issue.labels == ["flaky-test", "automation"]
    assert issue.repository == "elastic/integrations"
    assert issue.number == 0
    assert "First build failed: http://link/1" in issue.description


class FakeRunner:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = []

    def run(self, args):
        self.calls.append(list(args))
        if args[:2] == ["issue", "list"]:
            return "[]"
        if args[1] == self.fail_on:
            raise CommandError("boom", stderr="denied")
        return "https://github.com/elastic/integrations/issues/1"


def created(runner):
    return [c for c in runner.calls if c[:2] == ["issue", "create"]]


def test_check_reports_each_failure(results):
    runner = FakeRunner()
    check(results, CheckOptions(max_tests_reported=20), runner, resolve_owners)
    titles = [c[c.index("--title") + 1] for c in created(runner)]
    assert titles == [
        "[cisco_umbrella] Failing test daily: system test: default in cisco_umbrella.log",
        "[elastic_package_registry] Failing test daily: system test: default in elastic_package_registry.metrics",
        "[fortinet_fortigate] Failing test daily: pipeline test: test-fortinet-7-4.log in fortinet_fortigate.log",
        "[sql_input] Failing test daily: system test: mssql in sql_input.",
        "[sql_input] Failing test daily: system test: mysql in sql_input.",
    ]


def test_check_reports_build_when_too_many(results):
    runner = FakeRunner()
    check(results, CheckOptions(max_tests_reported=2, stack_version="8.16"), runner, resolve_owners)
    issues = created(runner)
    assert len(issues) == 1
    args = issues[0]
    assert args[args.index("--title") + 1] == "[Stack 8.16] Too many packages failing in daily job"
    assert args[-2:] == ["--label", "Team:Ecosystem"]
    body = args[args.index("--body") + 1]
    assert "    - fortinet_fortigate\n" in body


def test_check_dry_run_creates_nothing(results):
    runner = FakeRunner()
    check(results, CheckOptions(dry_run=True), runner, resolve_owners)
    assert created(runner) == []
    assert len(runner.calls) == 10


def test_check_collects_failures(results):
    runner = FakeRunner(fail_on="create")
    with pytest.raises(RuntimeError, match="failed to create issue") as info:
        check(results, CheckOptions(), runner, resolve_owners)
    assert str(info.value).count("failed to create issue") == 5
    assert len(created(runner)) == 5