"""Tests for ContainerRegistry."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from dockpanel.config import RegistryConfig
from dockpanel.core.errors import ContainerNotFoundError, UnavailableError
from dockpanel.core.registry import ContainerRegistry, group_projects


class TestGroupProjects:
    def test_groups_and_sorts_by_project(self, container_factory) -> None:
        containers = [
            container_factory("a", project="shop"),
            container_factory("b"),
            container_factory("c", project="shop"),
            container_factory("d", project="blog"),
        ]

        projects = group_projects(containers, "default")

        assert [p.name for p in projects] == ["blog", "default", "shop"]
        assert [c.id for c in projects[2].containers] == ["a", "c"]
        assert [c.id for c in projects[1].containers] == ["b"]

    def test_empty(self) -> None:
        assert group_projects([], "default") == ()


class TestContainerRegistry:
    """Tests for ContainerRegistry."""

    async def test_initial_snapshot_is_empty(self, registry: ContainerRegistry) -> None:
        assert registry.projects() == ()
        assert registry.snapshot.refreshed_at is None
        assert registry.snapshot.stale is False

    async def test_refresh_builds_projects(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
        container_factory,
    ) -> None:
        mock_runtime.list_containers.return_value = [
            container_factory("a"),
            container_factory("b", project="shop"),
        ]

        projects = await registry.refresh()

        assert [p.name for p in projects] == ["default", "shop"]
        assert registry.snapshot.refreshed_at is not None
        assert registry.find_container("b").project == "shop"

    async def test_refresh_replaces_wholesale(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
        container_factory,
    ) -> None:
        mock_runtime.list_containers.return_value = [container_factory("a")]
        await registry.refresh()
        mock_runtime.list_containers.return_value = [container_factory("b")]
        await registry.refresh()

        with pytest.raises(ContainerNotFoundError):
            registry.find_container("a")
        assert registry.find_container("b").id == "b"

    async def test_find_container_unknown(self, registry: ContainerRegistry) -> None:
        with pytest.raises(ContainerNotFoundError):
            registry.find_container("missing")

    async def test_failure_keeps_last_known_state(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
        container_factory,
    ) -> None:
        mock_runtime.list_containers.return_value = [container_factory("a")]
        await registry.refresh()

        mock_runtime.list_containers.side_effect = httpx.ConnectError("socket gone")
        with pytest.raises(UnavailableError):
            await registry.refresh()

        assert registry.snapshot.stale is True
        assert registry.find_container("a").id == "a"

    async def test_success_clears_stale(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
    ) -> None:
        mock_runtime.list_containers.side_effect = httpx.ConnectError("down")
        with pytest.raises(UnavailableError):
            await registry.refresh()
        assert registry.snapshot.stale is True

        mock_runtime.list_containers.side_effect = None
        mock_runtime.list_containers.return_value = []
        await registry.refresh()

        assert registry.snapshot.stale is False

    async def test_timeout_is_unavailable(self, mock_runtime: AsyncMock) -> None:
        async def hang() -> list:
            await asyncio.sleep(10)
            return []

        mock_runtime.list_containers.side_effect = hang
        registry = ContainerRegistry(mock_runtime, RegistryConfig(refresh_timeout=0.01))

        with pytest.raises(UnavailableError):
            await registry.refresh()
        assert registry.snapshot.stale is True

    async def test_reader_sees_old_or_new_snapshot(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
        container_factory,
    ) -> None:
        """A reader during refresh sees the complete old snapshot."""
        mock_runtime.list_containers.return_value = [
            container_factory("a", project="p1"),
            container_factory("b", project="p2"),
        ]
        await registry.refresh()
        old = registry.snapshot

        gate = asyncio.Event()
        entered = asyncio.Event()

        async def slow_list() -> list:
            entered.set()
            await gate.wait()
            return [container_factory("c", project="p1")]

        mock_runtime.list_containers.side_effect = slow_list
        task = asyncio.create_task(registry.refresh())
        await entered.wait()

        during = registry.snapshot
        assert during is old
        assert {c.id for c in during.containers} == {"a", "b"}

        gate.set()
        await task

        after = registry.snapshot
        assert {c.id for c in after.containers} == {"c"}
        assert set(after.index) == {"c"}

    async def test_older_refresh_does_not_overwrite_newer(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
        container_factory,
    ) -> None:
        slow_gate = asyncio.Event()
        entered = asyncio.Event()

        async def slow_list() -> list:
            entered.set()
            await slow_gate.wait()
            return [container_factory("old")]

        async def fast_list() -> list:
            return [container_factory("new")]

        mock_runtime.list_containers.side_effect = slow_list
        slow = asyncio.create_task(registry.refresh())
        await entered.wait()

        mock_runtime.list_containers.side_effect = fast_list
        await registry.refresh()

        slow_gate.set()
        await slow

        assert set(registry.snapshot.index) == {"new"}

    async def test_older_failure_does_not_mark_newer_stale(
        self,
        registry: ContainerRegistry,
        mock_runtime: AsyncMock,
        container_factory,
    ) -> None:
        slow_gate = asyncio.Event()
        entered = asyncio.Event()

        async def slow_failing_list() -> list:
            entered.set()
            await slow_gate.wait()
            raise httpx.ConnectError("daemon restarted")

        async def fast_list() -> list:
            return [container_factory("new")]

        mock_runtime.list_containers.side_effect = slow_failing_list
        slow = asyncio.create_task(registry.refresh())
        await entered.wait()

        mock_runtime.list_containers.side_effect = fast_list
        await registry.refresh()

        slow_gate.set()
        with pytest.raises(UnavailableError):
            await slow

        assert registry.snapshot.stale is False
        assert set(registry.snapshot.index) == {"new"}
