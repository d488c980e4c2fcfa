"""
Unit tests for the access predicate
"""
import pytest

from labnotes.core.permissions import AccessContext, Action, Actor, ResourceType, can_access

OWNER = 1
VIEWER = 2
EDITOR = 3
STRANGER = 4


def ctx(resource_type, role=None, author_id=None, attendees=()):
    return AccessContext(
        resource_type=resource_type,
        owner_id=OWNER,
        collaborator_role=role,
        author_id=author_id,
        attendee_ids=tuple(attendees),
    )


class TestCanAccess:
    @pytest.mark.parametrize('action', list(Action))
    @pytest.mark.parametrize('resource_type', list(ResourceType))
    def test_admin_and_owner_may_do_anything(self, resource_type, action):
        assert can_access(Actor(STRANGER, is_admin=True), ctx(resource_type), action)
        assert can_access(Actor(OWNER), ctx(resource_type), action)

    @pytest.mark.parametrize('action', list(Action))
    def test_stranger_is_denied(self, action):
        assert not can_access(Actor(STRANGER), ctx(ResourceType.PROJECT), action)
        assert not can_access(Actor(STRANGER), ctx(ResourceType.NOTE), action)

    def test_viewer_reads_only(self):
        viewer = Actor(VIEWER)
        note = ctx(ResourceType.NOTE, role='Viewer')

        assert can_access(viewer, note, Action.READ)
        assert not can_access(viewer, note, Action.CREATE)
        assert not can_access(viewer, note, Action.UPDATE)
        assert not can_access(viewer, note, Action.DELETE)

    def test_editor_reads_creates_updates(self):
        editor = Actor(EDITOR)
        for resource_type in (ResourceType.EXPERIMENT, ResourceType.NOTE, ResourceType.ATTACHMENT):
            context = ctx(resource_type, role='Editor')
            assert can_access(editor, context, Action.READ)
            assert can_access(editor, context, Action.CREATE)
            assert can_access(editor, context, Action.UPDATE)

    def test_editor_blocked_from_owner_only_actions(self):
        editor = Actor(EDITOR)

        assert not can_access(editor, ctx(ResourceType.PROJECT, role='Editor'), Action.UPDATE)
        assert not can_access(editor, ctx(ResourceType.PROJECT, role='Editor'), Action.DELETE)
        assert not can_access(editor, ctx(ResourceType.EXPERIMENT, role='Editor'), Action.DELETE)
        assert not can_access(editor, ctx(ResourceType.COLLABORATOR, role='Editor'), Action.CREATE)

    def test_editor_deletes_only_own_notes(self):
        editor = Actor(EDITOR)

        assert can_access(editor, ctx(ResourceType.NOTE, role='Editor', author_id=EDITOR), Action.DELETE)
        assert not can_access(editor, ctx(ResourceType.NOTE, role='Editor', author_id=OWNER), Action.DELETE)
        assert can_access(editor, ctx(ResourceType.ATTACHMENT, role='Editor', author_id=EDITOR), Action.DELETE)

    def test_viewer_cannot_delete_own_note(self):
        assert not can_access(Actor(VIEWER), ctx(ResourceType.NOTE, role='Viewer', author_id=VIEWER), Action.DELETE)

    def test_report_author_manages_own_report(self):
        author = Actor(EDITOR)
        report = ctx(ResourceType.REPORT, role='Editor', author_id=EDITOR)

        assert can_access(author, report, Action.DELETE)
        assert not can_access(Actor(VIEWER), ctx(ResourceType.REPORT, role='Viewer', author_id=EDITOR), Action.DELETE)

    def test_calendar_attendee_reads_only(self):
        attendee = Actor(STRANGER)
        event = AccessContext(resource_type=ResourceType.CALENDAR_EVENT, author_id=OWNER, attendee_ids=(STRANGER,))

        assert can_access(attendee, event, Action.READ)
        assert not can_access(attendee, event, Action.UPDATE)
        assert can_access(Actor(OWNER), event, Action.DELETE)

    def test_unknown_role_is_denied(self):
        assert not can_access(Actor(VIEWER), ctx(ResourceType.NOTE, role='Owner'), Action.READ)
