"""
Authorization rules: entry visibility, push authorization, password-reset
scope and supervisor relationship maintenance.
"""

import pytest

from gatekeeper.models import Entry, PushRejection, Role, User
from gatekeeper.utils.exceptions import AuthorizationError, ValidationError


def _entry(record_id, author, checkpoint="CP-EAST-MAIN"):
    return Entry(
        record_id=record_id,
        checkpoint_id=checkpoint,
        entry_type="PERSONNEL",
        logging_user_id=author,
    )


class TestVisibility:
    """Who can see which entries."""

    def test_admin_sees_everything(self, access, admin):
        entries = [_entry("r1", "user-op-east"), _entry("r2", "user-op-west")]
        assert access.visible_entries(entries, admin) == entries

    def test_operator_sees_only_own_entries(self, access, op_east):
        entries = [_entry("r1", "user-op-east"), _entry("r2", "user-op-west")]
        visible = access.visible_entries(entries, op_east)
        assert [e.record_id for e in visible] == ["r1"]

    def test_supervisor_sees_only_managed_operators(self, access, supervisor):
        assert supervisor.managed_operators == ["user-op-east"]
        entries = [
            _entry("r1", "user-op-east"),
            _entry("r2", "user-op-west"),
            _entry("r3", "user-supervisor-john"),
        ]
        visible = access.visible_entries(entries, supervisor)
        assert [e.record_id for e in visible] == ["r1"]

    def test_supervisor_without_operators_sees_nothing(self, access):
        lonely = User(user_id="user-sup-2", username="sup2", role=Role.SUPERVISOR)
        entries = [_entry("r1", "user-op-east"), _entry("r2", "user-sup-2")]
        assert access.visible_entries(entries, lonely) == []


class TestPushAuthorization:
    """Write rules applied to every pushed entry."""

    def test_operator_allowed_checkpoint(self, access, op_east):
        assert access.authorize_push(_entry("r1", "user-op-east"), op_east) is None

    def test_operator_checkpoint_outside_allowlist(self, access, op_east):
        entry = _entry("r1", "user-op-east", checkpoint="CP-WEST-GATE")
        assert access.authorize_push(entry, op_east) == PushRejection.CHECKPOINT_NOT_ALLOWED

    def test_operator_with_empty_allowlist_is_denied(self, access):
        operator = User(user_id="user-op-x", username="opx", role=Role.GATE_OPERATOR)
        entry = _entry("r1", "user-op-x")
        assert access.authorize_push(entry, operator) == PushRejection.CHECKPOINT_NOT_ALLOWED

    @pytest.mark.parametrize("user_fixture", ["admin", "supervisor", "op_east"])
    def test_author_must_be_requester_for_every_role(self, request, access, user_fixture):
        requester = request.getfixturevalue(user_fixture)
        entry = _entry("r1", "someone-else")
        assert access.authorize_push(entry, requester) == PushRejection.FOREIGN_AUTHOR

    def test_admin_and_supervisor_not_bound_by_allowlist(self, access, admin, supervisor):
        assert access.authorize_push(_entry("r1", "user-admin", "CP-SOUTH-01"), admin) is None
        # supervisor_john's allowlist does not include CP-SOUTH-01
        assert access.authorize_push(_entry("r2", "user-supervisor-john", "CP-SOUTH-01"), supervisor) is None

    def test_existing_record_of_another_user_is_rejected(self, access, admin):
        existing = _entry("r1", "user-op-east")
        incoming = _entry("r1", "user-admin")
        assert access.authorize_push(incoming, admin, existing) == PushRejection.RECORD_OWNED_BY_OTHER

    def test_checkpoint_access_by_role(self, access, admin, supervisor, op_east):
        assert access.can_access_checkpoint(admin, "CP-WEST-GATE")
        assert access.can_access_checkpoint(supervisor, "CP-NORTH-01")
        assert not access.can_access_checkpoint(supervisor, "CP-WEST-GATE")
        assert access.can_access_checkpoint(op_east, "CP-EAST-MAIN")
        assert not access.can_access_checkpoint(op_east, "CP-NORTH-01")


class TestManagementRules:
    """Password resets, self-deletion and supervisor links."""

    def test_admin_can_reset_anyone(self, access, admin, op_west):
        access.authorize_password_reset(admin, op_west)

    def test_supervisor_can_reset_managed_operator(self, access, supervisor, op_east):
        access.authorize_password_reset(supervisor, op_east)

    def test_supervisor_cannot_reset_unmanaged_operator(self, access, supervisor, op_west):
        with pytest.raises(AuthorizationError):
            access.authorize_password_reset(supervisor, op_west)

    def test_supervisor_cannot_reset_self(self, access, supervisor):
        with pytest.raises(AuthorizationError):
            access.authorize_password_reset(supervisor, supervisor)

    def test_operator_cannot_reset(self, access, op_east, op_west):
        with pytest.raises(AuthorizationError):
            access.authorize_password_reset(op_east, op_west)

    def test_self_delete_is_rejected(self, access, admin):
        with pytest.raises(ValidationError):
            access.ensure_not_self_delete(admin, admin.user_id)

    def test_supervisor_link_only_on_operators(self, access):
        with pytest.raises(ValidationError):
            access.validate_supervisor_link(Role.SUPERVISOR, "user-supervisor-john")

    def test_supervisor_link_must_reference_supervisor(self, access):
        with pytest.raises(ValidationError):
            access.validate_supervisor_link(Role.GATE_OPERATOR, "user-op-west")
        with pytest.raises(ValidationError):
            access.validate_supervisor_link(Role.GATE_OPERATOR, "user-missing")
        access.validate_supervisor_link(Role.GATE_OPERATOR, "user-supervisor-john")


class TestRelationshipReconciliation:
    """Unlinking operators when their supervisor goes away."""

    def test_deleted_supervisor_leaves_no_links(self, access, seeded_store, supervisor):
        seeded_store.delete_user(supervisor.user_id)
        access.reconcile_relationships(supervisor, None)

        assert seeded_store.get_user("user-op-east").supervisor_id is None
        assert seeded_store.list_managed_operator_ids(supervisor.user_id) == []

    def test_demoted_supervisor_is_unlinked(self, access, seeded_store, supervisor):
        demoted = seeded_store.update_user(supervisor.model_copy(update={"role": Role.GATE_OPERATOR}))
        access.reconcile_relationships(supervisor, demoted)

        assert seeded_store.get_user("user-op-east").supervisor_id is None

    def test_operator_changes_need_no_repair(self, access, seeded_store, op_east):
        access.reconcile_relationships(op_east, op_east)
        assert seeded_store.get_user("user-supervisor-john").managed_operators == ["user-op-east"]
