"""Tests for owner, activity, notification point and principal models."""

from datetime import datetime, timezone

import pytest

from beacontrack.domain.activity.models import (
    ANONYMOUS_BINDING,
    Activity,
    AnonymizedActivity,
    ArchiveReason,
)
from beacontrack.domain.admin.models import AdminRole, Principal
from beacontrack.domain.device.models import BindingType
from beacontrack.domain.notification.models import NotificationPoint
from beacontrack.domain.owner.models import Bindable, Elder, MapUser
from beacontrack.domain.shared.value_objects import ArchiveSessionId

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestOwners:
    def test_both_owners_are_bindable(self):
        assert isinstance(Elder(elder_id="e1", tenant_id="t1"), Bindable)
        assert isinstance(MapUser(user_id="u1"), Bindable)

    def test_elder_attach_and_detach(self):
        elder = Elder(elder_id="e1", tenant_id="t1")

        elder.attach("dev_1", NOW)
        assert elder.device_ref == "dev_1"
        assert elder.updated_at == NOW

        elder.detach()
        assert elder.device_ref is None

    def test_elder_deactivate_clears_reference(self):
        elder = Elder(elder_id="e1", tenant_id="t1", device_id="dev_1")

        elder.deactivate()

        assert elder.is_active is False
        assert elder.device_id is None

    def test_binding_types(self):
        assert Elder(elder_id="e1", tenant_id="t1").binding_type == BindingType.ELDER
        assert MapUser(user_id="u1").binding_type == BindingType.MAP_USER


class TestAnonymizedActivity:
    def test_from_activity_strips_ownership(self):
        activity = Activity(
            activity_id="act_1",
            device_id="dev_1",
            timestamp=NOW,
            gateway_id="gw_1",
            latitude=25.0,
            longitude=121.5,
            rssi=-70,
            binding_type="ELDER",
            triggered_notification=True,
            notification_type="ENTER",
            notification_point_id="np_1",
        )
        session_id = ArchiveSessionId.generate()

        record = AnonymizedActivity.from_activity(activity, ArchiveReason.REBIND, session_id, NOW)

        assert record.device_id == "dev_1"
        assert record.binding_type == ANONYMOUS_BINDING
        assert record.bound_to is None
        assert record.original_activity_id == "act_1"
        assert record.archive_session_id == session_id.value
        assert record.anonymized_reason == ArchiveReason.REBIND
        assert record.anonymized_at == NOW
        assert record.gateway_id == "gw_1"
        assert record.rssi == -70
        assert record.triggered_notification is True
        assert record.notification_point_id == "np_1"


class TestNotificationPoint:
    def test_requires_exactly_one_scope(self):
        with pytest.raises(ValueError):
            NotificationPoint(point_id="np_1", gateway_id="gw_1")
        with pytest.raises(ValueError):
            NotificationPoint(point_id="np_1", gateway_id="gw_1", tenant_id="t", device_id="d")

    def test_device_scoped(self):
        point = NotificationPoint(point_id="np_1", gateway_id="gw_1", device_id="dev_1")
        assert point.is_device_scoped is True


class TestPrincipal:
    def test_plain_user_is_not_admin(self):
        principal = Principal(principal_id="user_1")
        assert principal.is_admin is False
        assert principal.administers_tenant("t1") is False

    def test_super_admin_administers_every_tenant(self):
        principal = Principal(principal_id="a", role=AdminRole.SUPER_ADMIN)
        assert principal.administers_tenant("t1") is True
        assert principal.administers_tenant(None) is True

    def test_tenant_admin_only_own_tenant(self):
        principal = Principal(principal_id="a", role=AdminRole.TENANT_ADMIN, tenant_id="t1")
        assert principal.administers_tenant("t1") is True
        assert principal.administers_tenant("t2") is False
        assert principal.administers_tenant(None) is False
