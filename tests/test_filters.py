"""
Tests for list_tasks filtering, ordering and search_tasks.
"""

import pytest

from michishirube.data.models import Status, Task
from michishirube.db.filters import TaskFilters
from michishirube.errors import ValidationError


@pytest.fixture
def populated(repo):
    """Five tasks created oldest to newest; returns them by short name."""
    rows = [
        ("leak", dict(title="Fix memory leak", priority="critical", status="in_progress", tags=["k8s", "memory"])),
        ("docs", dict(title="Write upgrade docs", priority="minor", status="new", tags=["docs"])),
        ("ci", dict(title="Flaky CI job", jira_id="OCPBUGS-42", priority="high", status="blocked", tags=["ci", "k8s"])),
        ("old", dict(title="Old spike", priority="normal", status="archived", tags=["k8s"])),
        ("done", dict(title="Ship operator", priority="normal", status="done", tags=[])),
    ]
    tasks = {}
    for name, fields in rows:
        tasks[name] = repo.create_task(Task(**fields))
    return tasks


def titles(tasks):
    return [task.title for task in tasks]


class TestListTasks:
    def test_newest_first_without_archived(self, repo, populated):
        assert titles(repo.list_tasks()) == [
            "Ship operator",
            "Flaky CI job",
            "Write upgrade docs",
            "Fix memory leak",
        ]

    def test_include_archived(self, repo, populated):
        result = repo.list_tasks(TaskFilters(include_archived=True))
        assert len(result) == 5
        assert result[1].title == "Old spike"

    def test_explicit_archived_status_overrides_exclusion(self, repo, populated):
        result = repo.list_tasks(TaskFilters(status=["archived"]))
        assert titles(result) == ["Old spike"]

    def test_status_filter_is_a_set(self, repo, populated):
        result = repo.list_tasks(TaskFilters(status=[Status.NEW, "blocked"]))
        assert titles(result) == ["Flaky CI job", "Write upgrade docs"]

    def test_priority_filter(self, repo, populated):
        result = repo.list_tasks(TaskFilters(priority=["critical", "high"]))
        assert titles(result) == ["Flaky CI job", "Fix memory leak"]

    def test_invalid_filter_value_is_rejected(self, repo, populated):
        with pytest.raises(ValidationError):
            repo.list_tasks(TaskFilters(status=["paused"]))

    def test_tag_filter_requires_every_tag(self, repo, populated):
        assert titles(repo.list_tasks(TaskFilters(tags=["k8s"]))) == [
            "Flaky CI job",
            "Fix memory leak",
        ]
        assert titles(repo.list_tasks(TaskFilters(tags=["k8s", "ci"]))) == ["Flaky CI job"]

    def test_tag_filter_matches_whole_elements(self, repo, populated):
        assert repo.list_tasks(TaskFilters(tags=["k8"])) == []

    def test_tag_filter_ignores_quotes_inside_longer_tags(self, repo):
        tricky = repo.create_task(Task(title="Quoted", tags=['x", "a']))
        assert repo.list_tasks(TaskFilters(tags=["a"])) == []
        assert [t.id for t in repo.list_tasks(TaskFilters(tags=['x", "a']))] == [tricky.id]

    def test_limit_and_offset(self, repo, populated):
        page = repo.list_tasks(TaskFilters(limit=2, offset=1))
        assert titles(page) == ["Flaky CI job", "Write upgrade docs"]

    def test_offset_without_limit(self, repo, populated):
        assert titles(repo.list_tasks(TaskFilters(offset=3))) == ["Fix memory leak"]

    def test_non_positive_limit_means_unbounded(self, repo, populated):
        assert len(repo.list_tasks(TaskFilters(limit=0))) == 4
        assert len(repo.list_tasks(TaskFilters(limit=-5))) == 4

    def test_none_values_mean_unset(self, repo, populated):
        filters = TaskFilters(status=None, priority=None, tags=None, limit=None, offset=None)
        assert len(repo.list_tasks(filters)) == 4
        assert repo.count_tasks(filters) == 4

    def test_same_timestamp_keeps_insertion_order(self, repo, engine):
        first = repo.create_task(Task(title="First"))
        second = repo.create_task(Task(title="Second"))
        with engine.begin() as conn:
            conn.exec_driver_sql(
                "UPDATE tasks SET created_at = '2024-01-01 00:00:00.000000'"
            )
        assert [t.id for t in repo.list_tasks()] == [second.id, first.id]

    def test_count_ignores_paging(self, repo, populated):
        assert repo.count_tasks() == 4
        assert repo.count_tasks(TaskFilters(limit=1, include_archived=True)) == 5
        assert repo.count_tasks(TaskFilters(tags=["k8s"])) == 2


class TestSearchTasks:
    def test_matches_title_case_insensitively(self, repo, populated):
        assert titles(repo.search_tasks("MEMORY")) == ["Fix memory leak"]

    def test_matches_jira_id(self, repo, populated):
        assert titles(repo.search_tasks("ocpbugs-42")) == ["Flaky CI job"]

    def test_matches_tags(self, repo, populated):
        assert titles(repo.search_tasks("k8s")) == ["Flaky CI job", "Fix memory leak"]

    def test_archived_hidden_unless_requested(self, repo, populated):
        assert "Old spike" not in titles(repo.search_tasks("spike"))
        assert titles(repo.search_tasks("spike", include_archived=True)) == ["Old spike"]

    def test_limit(self, repo, populated):
        assert len(repo.search_tasks("k8s", limit=1)) == 1
        assert len(repo.search_tasks("k8s", limit=None)) == 2

    def test_no_match(self, repo, populated):
        assert repo.search_tasks("nothing like this") == []

    def test_wildcards_match_literally(self, repo):
        repo.create_task(Task(title="Reach 100% coverage"))
        repo.create_task(Task(title="Rename snake_case fields"))
        repo.create_task(Task(title="Plain title"))

        assert titles(repo.search_tasks("%")) == ["Reach 100% coverage"]
        assert titles(repo.search_tasks("_")) == ["Rename snake_case fields"]

    def test_match_can_span_encoded_tags(self, repo):
        repo.create_task(Task(title="Quirk", tags=["a", "b"]))
        assert titles(repo.search_tasks('a", "b')) == ["Quirk"]


def test_one_task_per_status(repo):
    for status in Status:
        repo.create_task(Task(title=f"{status.value} task", status=status))

    assert len(repo.list_tasks()) == 4
    assert len(repo.list_tasks(TaskFilters(include_archived=True))) == 5
    result = repo.list_tasks(TaskFilters(status=["new", "in_progress"]))
    assert {task.status for task in result} == {Status.NEW, Status.IN_PROGRESS}
    assert len(result) == 2
