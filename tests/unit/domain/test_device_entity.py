"""Tests for the Device aggregate."""

from datetime import datetime, timezone

import pytest
from freezegun import freeze_time

from beacontrack.domain.device.models import BindingType, Device
from beacontrack.domain.shared.errors import InvalidBindingStateError
from beacontrack.domain.shared.value_objects import BeaconIdentity, Gender, MapUserProfile

IDENTITY = BeaconIdentity(
    service_id="FDA50693-A4E2-4FB1-AFCF-C6EB07647825", group_number=1, unit_number=7
)


@pytest.fixture
def device() -> Device:
    return Device.register("dev_1", IDENTITY, " abcdef0001 ", tags=["tenant_a"])


class TestRegistration:
    def test_register_creates_unbound_device(self, device):
        assert device.binding_type == BindingType.UNBOUND
        assert device.bound_to is None
        assert device.bound_at is None
        assert device.is_bound is False

    def test_serial_is_normalized_to_upper_case(self, device):
        assert device.serial == "ABCDEF0001"

    def test_tenant_scope_is_first_tag(self):
        device = Device.register("dev_2", IDENTITY, "ABCDEF0002", tags=["t1", "t2"])
        assert device.tenant_scope == "t1"

    def test_tenant_scope_none_without_tags(self):
        device = Device.register("dev_2", IDENTITY, "ABCDEF0002")
        assert device.tenant_scope is None

    def test_inconsistent_binding_rejected_at_construction(self):
        with pytest.raises(InvalidBindingStateError):
            Device(
                device_id="dev_3",
                identity=IDENTITY,
                serial="ABCDEF0003",
                binding_type=BindingType.UNBOUND,
                bound_to="elder_1",
            )

    def test_shadow_fields_rejected_on_elder_device(self):
        with pytest.raises(InvalidBindingStateError):
            Device(
                device_id="dev_3",
                identity=IDENTITY,
                serial="ABCDEF0003",
                binding_type=BindingType.ELDER,
                bound_to="elder_1",
                bound_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                nickname="Grandpa",
            )


class TestBind:
    @freeze_time("2024-05-01 10:00:00")
    def test_bind_to_elder_sets_owner_and_timestamp(self, device):
        device.bind(BindingType.ELDER, "elder_1")

        assert device.binding_type == BindingType.ELDER
        assert device.bound_to == "elder_1"
        assert device.bound_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert device.is_bound_to(BindingType.ELDER, "elder_1")

    def test_bind_to_map_user_applies_profile(self, device):
        profile = MapUserProfile(nickname="Grandpa", age=81, gender=Gender.MALE)

        device.bind(BindingType.MAP_USER, "user_1", profile=profile)

        assert device.nickname == "Grandpa"
        assert device.age == 81
        assert device.gender == Gender.MALE

    def test_rebinding_to_elder_clears_map_user_fields(self, device):
        device.bind(BindingType.MAP_USER, "user_1", profile=MapUserProfile(nickname="A"))
        device.stage_push_token("token-1")

        device.bind(BindingType.ELDER, "elder_1")

        assert device.nickname is None
        assert device.push_token is None
        assert device.notification_enabled is None

    def test_bind_unbound_type_rejected(self, device):
        with pytest.raises(InvalidBindingStateError):
            device.bind(BindingType.UNBOUND, "elder_1")

    def test_bind_without_owner_rejected(self, device):
        with pytest.raises(InvalidBindingStateError):
            device.bind(BindingType.ELDER, "")

    def test_stage_push_token_requires_map_user(self, device):
        device.bind(BindingType.ELDER, "elder_1")

        with pytest.raises(InvalidBindingStateError):
            device.stage_push_token("token-1")

    def test_stage_push_token_enables_notifications(self, device):
        device.bind(BindingType.MAP_USER, "user_1")

        device.stage_push_token("token-1")

        assert device.push_token == "token-1"
        assert device.notification_enabled is True


class TestUnbind:
    def test_unbind_resets_every_owner_field(self, device):
        device.bind(BindingType.MAP_USER, "user_1", profile=MapUserProfile(nickname="A", age=70))
        device.stage_push_token("token-1")

        device.unbind()

        assert device.binding_type == BindingType.UNBOUND
        assert device.bound_to is None
        assert device.bound_at is None
        assert device.nickname is None
        assert device.age is None
        assert device.push_token is None

    def test_unbind_keeps_tags_and_inherited_points(self, device):
        device.inherited_notification_point_ids = ["gw_1"]
        device.bind(BindingType.ELDER, "elder_1")

        device.unbind()

        assert device.tags == ["tenant_a"]
        assert device.inherited_notification_point_ids == ["gw_1"]


class TestTags:
    def test_replace_tags_reports_set_change(self, device):
        assert device.replace_tags(["tenant_b"]) is True
        assert device.tags == ["tenant_b"]

    def test_reordering_is_not_a_change(self):
        device = Device.register("dev_2", IDENTITY, "ABCDEF0002", tags=["t1", "t2"])

        assert device.replace_tags(["t2", "t1"]) is False
        assert device.tenant_scope == "t2"

    def test_identical_tags_keep_updated_at(self):
        with freeze_time("2024-01-01 08:00:00"):
            device = Device.register("dev_3", IDENTITY, "ABCDEF0003", tags=["t1", "t2"])
        with freeze_time("2024-01-02 08:00:00"):
            assert device.replace_tags(["t1", "t2"]) is False

        assert device.updated_at == datetime(2024, 1, 1, 8, tzinfo=timezone.utc)

    def test_duplicates_and_blanks_dropped(self, device):
        device.replace_tags(["t1", " ", "t1", "t2"])
        assert device.tags == ["t1", "t2"]


def test_equality_by_device_id():
    a = Device.register("dev_1", IDENTITY, "ABCDEF0001")
    b = Device.register("dev_1", IDENTITY, "ZZZZZZ9999")

    assert a == b
    assert hash(a) == hash(b)
