from testsreporter.links import DataError, ErrorLinks


def test_error_links_data():
    links = ErrorLinks(
        current_issue_url="https://github.com/elastic/integrations/issues/42",
        first_build="http://link/1",
        previous_builds=["http://link/2", "http://link/3"],
        closed_issue_url="http://link/old",
    )
    assert links.data() == {
        "firstBuild": "http://link/1",
        "closedIssueURL": "http://link/old",
        "previousBuilds": ["http://link/2", "http://link/3"],
    }


def test_error_links_data_is_a_copy():
    links = ErrorLinks(previous_builds=["http://link/2"])
    links.data()["previousBuilds"].append("http://link/9")
    assert links.previous_builds == ["http://link/2"]


def test_default_links_are_empty_and_independent():
    first, second = ErrorLinks(), ErrorLinks()
    first.previous_builds.append("x")
    assert second.previous_builds == []
    assert second.first_build == ""


def test_data_error_data():
    data = DataError(
        serverless=True,
        serverless_project="observability",
        logs_db=False,
        stack_version="8.16.0-SNAPSHOT",
        subscription="basic",
    )
    assert data.data() == {
        "stackVersion": "8.16.0-SNAPSHOT",
        "serverless": True,
        "serverlessProject": "observability",
        "logsDB": False,
        "subscription": "basic",
    }


def test_prefix_empty_without_environment():
    assert DataError().prefix() == ""


def test_prefix_with_every_field():
    data = DataError(
        serverless=True,
        serverless_project="observability",
        logs_db=True,
        stack_version="8.16",
        subscription="basic",
    )
    assert data.prefix() == "[LogsDB] [Serverless observability] [Stack 8.16] [Subscription basic] "


def test_prefix_ignores_project_when_not_serverless():
    data = DataError(serverless=False, serverless_project="observability")
    assert "observability" not in data.prefix()


def test_prefix_stack_only():
    data = DataError(stack_version="8.14")
    assert data.prefix().startswith("[Stack 8.14]")
    assert data.prefix().endswith(" ")