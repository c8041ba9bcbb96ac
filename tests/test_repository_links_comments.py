"""
Tests for links, comments and cascading deletes.
"""

import pytest

from michishirube.data.models import Comment, Link, LinkType, Task
from michishirube.errors import NotFoundError, StorageError, ValidationError


def make_link(task_id, **overrides):
    fields = dict(
        task_id=task_id,
        type="pull_request",
        url="https://github.com/org/repo/pull/456",
    )
    fields.update(overrides)
    return Link(**fields)


class TestLinks:
    def test_create_applies_defaults(self, repo, sample_task):
        link = repo.create_link(make_link(sample_task.id))

        stored = repo.get_link(link.id)
        assert stored.type == LinkType.PULL_REQUEST
        assert stored.title == "https://github.com/org/repo/pull/456"
        assert stored.status == ""
        assert stored.metadata == "{}"

    def test_create_keeps_given_title(self, repo, sample_task):
        link = repo.create_link(make_link(sample_task.id, title="Fix leak", status="merged"))
        stored = repo.get_link(link.id)
        assert stored.title == "Fix leak"
        assert stored.status == "merged"

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"task_id": ""}, "task_id"),
            ({"url": ""}, "url"),
            ({"type": ""}, "type"),
            ({"type": "email"}, "type"),
        ],
    )
    def test_validation(self, repo, sample_task, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            repo.create_link(make_link(**{"task_id": sample_task.id, **overrides}))
        assert exc_info.value.field == field

    def test_unknown_task_is_rejected_by_foreign_key(self, repo):
        with pytest.raises(StorageError):
            repo.create_link(make_link("no-such-task"))

    def test_update(self, repo, sample_task):
        link = repo.create_link(make_link(sample_task.id))
        link.status = "merged"
        link.type = LinkType.DOCUMENTATION
        repo.update_link(link)

        stored = repo.get_link(link.id)
        assert stored.status == "merged"
        assert stored.type == LinkType.DOCUMENTATION

    def test_get_missing(self, repo):
        with pytest.raises(NotFoundError) as exc_info:
            repo.get_link("missing")
        assert exc_info.value.code == "LINK_NOT_FOUND"

    def test_delete(self, repo, sample_task):
        link = repo.create_link(make_link(sample_task.id))
        repo.delete_link(link.id)
        repo.delete_link(link.id)
        assert repo.get_task_links(sample_task.id) == []

    def test_task_links_only_for_that_task(self, repo, sample_task):
        other = repo.create_task(Task(title="Other"))
        first = repo.create_link(make_link(sample_task.id, url="https://a"))
        second = repo.create_link(make_link(sample_task.id, url="https://b", type="slack_thread"))
        repo.create_link(make_link(other.id))

        links = repo.get_task_links(sample_task.id)
        assert [link.id for link in links] == [first.id, second.id]


class TestComments:
    def test_create_and_get(self, repo, sample_task):
        comment = repo.create_comment(
            Comment(task_id=sample_task.id, content="Found the root cause")
        )
        assert comment.id
        assert comment.created_at is not None

        stored = repo.get_comment(comment.id)
        assert stored.content == "Found the root cause"
        assert stored.created_at == comment.created_at

    @pytest.mark.parametrize("content", ["", "  \n"])
    def test_rejects_empty_content(self, repo, sample_task, content):
        with pytest.raises(ValidationError) as exc_info:
            repo.create_comment(Comment(task_id=sample_task.id, content=content))
        assert exc_info.value.field == "content"

    def test_rejects_missing_task_id(self, repo):
        with pytest.raises(ValidationError):
            repo.create_comment(Comment(content="orphan"))

    def test_task_comments_oldest_first(self, repo, sample_task):
        contents = ["first", "second", "third"]
        for content in contents:
            repo.create_comment(Comment(task_id=sample_task.id, content=content))

        stored = repo.get_task_comments(sample_task.id)
        assert [c.content for c in stored] == contents

    def test_update_keeps_created_at(self, repo, sample_task):
        comment = repo.create_comment(Comment(task_id=sample_task.id, content="draft"))
        created_at = comment.created_at
        comment.content = "final"
        repo.update_comment(comment)

        stored = repo.get_comment(comment.id)
        assert stored.content == "final"
        assert stored.created_at == created_at

    def test_delete(self, repo, sample_task):
        comment = repo.create_comment(Comment(task_id=sample_task.id, content="bye"))
        repo.delete_comment(comment.id)
        with pytest.raises(NotFoundError):
            repo.get_comment(comment.id)


class TestCascade:
    def test_deleting_task_removes_links_and_comments(self, repo, sample_task):
        link = repo.create_link(make_link(sample_task.id))
        comment = repo.create_comment(Comment(task_id=sample_task.id, content="note"))

        repo.delete_task(sample_task.id)

        assert repo.get_task_links(sample_task.id) == []
        assert repo.get_task_comments(sample_task.id) == []
        with pytest.raises(NotFoundError):
            repo.get_link(link.id)
        with pytest.raises(NotFoundError):
            repo.get_comment(comment.id)

    def test_other_tasks_are_untouched(self, repo, sample_task):
        other = repo.create_task(Task(title="Keep me"))
        kept = repo.create_link(make_link(other.id))
        repo.create_link(make_link(sample_task.id))

        repo.delete_task(sample_task.id)

        assert [link.id for link in repo.get_task_links(other.id)] == [kept.id]
