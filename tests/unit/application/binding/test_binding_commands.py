"""Tests for the binding command objects (authorization + delegation)."""

import pytest

from beacontrack.domain.activity.models import ArchiveReason
from beacontrack.domain.admin.models import Principal
from beacontrack.domain.device.models import BindingType
from beacontrack.domain.shared.errors import AuthorizationError, DeviceNotFoundError

USER_Y = Principal(principal_id="user_y")


class TestBindCommands:
    @pytest.mark.asyncio
    async def test_map_user_binds_own_device(self, services, add_device, add_map_user):
        await add_device(1)
        await add_map_user("user_y")

        device = await services.bind_device_to_map_user.execute(USER_Y, "ABCDEF0001", "user_y")

        assert device.is_bound_to(BindingType.MAP_USER, "user_y")

    @pytest.mark.asyncio
    async def test_map_user_cannot_bind_for_someone_else(
        self, services, add_device, add_map_user, db
    ):
        await add_device(1)
        await add_map_user("user_z")

        with pytest.raises(AuthorizationError):
            await services.bind_device_to_map_user.execute(USER_Y, "dev_1", "user_z")

        assert db.devices["dev_1"].binding_type == BindingType.UNBOUND

    @pytest.mark.asyncio
    async def test_tenant_admin_binds_elder(self, services, add_device, add_elder, tenant_admin):
        await add_device(1)
        await add_elder("elder_1", tenant_id="tenant_a")

        device = await services.bind_device_to_elder.execute(tenant_admin, "dev_1", "elder_1")

        assert device.bound_to == "elder_1"

    @pytest.mark.asyncio
    async def test_map_user_cannot_bind_elder(self, services, add_device, add_elder):
        await add_device(1)
        await add_elder("elder_1")

        with pytest.raises(AuthorizationError):
            await services.bind_device_to_elder.execute(USER_Y, "dev_1", "elder_1")


class TestUnbindCommands:
    @pytest.mark.asyncio
    async def test_unbind_own_device(self, services, add_device, add_map_user):
        await add_device(1)
        await add_map_user("user_y")
        await services.manager.bind_to_map_user("dev_1", "user_y")

        device = await services.unbind_map_user_device.execute(USER_Y, "user_y")

        assert device.binding_type == BindingType.UNBOUND

    @pytest.mark.asyncio
    async def test_admin_unbinds_device(self, services, add_device, add_elder, super_admin):
        await add_device(1)
        await add_elder("elder_1")
        await services.manager.bind_to_elder("dev_1", "elder_1")

        device = await services.unbind_device.execute(super_admin, "dev_1")

        assert device.binding_type == BindingType.UNBOUND

    @pytest.mark.asyncio
    async def test_deactivate_elder(self, services, add_elder, tenant_admin):
        await add_elder("elder_1", tenant_id="tenant_a")

        elder = await services.deactivate_elder.execute(tenant_admin, "elder_1")

        assert elder.is_active is False


class TestDeviceAdminCommands:
    @pytest.mark.asyncio
    async def test_update_tags_unknown_device(self, services, super_admin):
        with pytest.raises(DeviceNotFoundError):
            await services.update_device_tags.execute(super_admin, "missing", ["t"])

    @pytest.mark.asyncio
    async def test_update_tags_requires_tenant_admin(self, services, add_device, tenant_admin):
        await add_device(1, tags=["tenant_b"])

        with pytest.raises(AuthorizationError):
            await services.update_device_tags.execute(tenant_admin, "dev_1", ["tenant_a"])

    @pytest.mark.asyncio
    async def test_recompute_inheritance(
        self, services, add_device, add_tenant_point, tenant_admin
    ):
        await add_device(1, tags=["tenant_a"])
        await add_tenant_point("np_1", "tenant_a", "gw_1")

        assert await services.recompute_inheritance.execute(tenant_admin, "dev_1") == ["gw_1"]

    @pytest.mark.asyncio
    async def test_archive_after_failed_unbind(
        self, services, add_device, add_elder, add_activities, batches, persistence, super_admin
    ):
        await add_device(1)
        await add_elder("elder_1")
        await services.manager.bind_to_elder("dev_1", "elder_1")
        await add_activities("dev_1", 10)
        batches.fail_on_attempts = {batches.attempts + 1}
        await services.unbind_device.execute(super_admin, "dev_1")

        result = await services.archive_device_activities.execute(super_admin, "dev_1")

        assert result.succeeded
        assert result.archived_count == 10
        assert result.reason == ArchiveReason.GHOST_DEVICE_CLEANUP
        assert await persistence.activities.count_live("dev_1") == 0
