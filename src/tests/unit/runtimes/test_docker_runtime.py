"""Unit tests for DockerRuntime."""

from typing import Any
from unittest.mock import AsyncMock, call

import httpx
import pytest

from dockpanel.config import DockerConfig
from dockpanel.core.errors import ContainerNotFoundError, InvalidSpecError
from dockpanel.core.models import PortMapping, RunSpec
from dockpanel.infra import ContainerConfig
from dockpanel.runtimes.docker import DockerRuntime

PROJECT_LABEL = "com.docker.compose.project"


def serve(api: AsyncMock, payloads: dict[str, dict[str, Any]]) -> None:
    """Answer list/inspect calls from a fixed set of inspect payloads."""

    def list_(filters: dict | None = None) -> list[dict]:
        if not filters:
            return [{"Id": docker_id} for docker_id in payloads]
        wanted = filters["label"][0].split("=", 1)[1]
        return [
            {"Id": docker_id}
            for docker_id, data in payloads.items()
            if data["Config"]["Labels"].get("dockpanel.id") == wanted
        ]

    api.list.side_effect = list_
    api.inspect.side_effect = lambda ref: payloads.get(ref)


class TestDockerRuntime:
    """Tests for DockerRuntime."""

    @pytest.fixture
    def runtime(
        self,
        docker_config: DockerConfig,
        mock_container_api: AsyncMock,
        mock_image_api: AsyncMock,
    ) -> DockerRuntime:
        """Create DockerRuntime with mock dependencies."""
        return DockerRuntime(
            config=docker_config,
            containers=mock_container_api,
            images=mock_image_api,
        )

    async def test_list_containers_skips_vanished(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        """A container removed between list and inspect is left out."""
        mock_container_api.list.return_value = [{"Id": "d1"}, {"Id": "d2"}]
        mock_container_api.inspect.side_effect = lambda ref: (
            payload_factory(docker_id="d1", panel_id="c1") if ref == "d1" else None
        )

        result = await runtime.list_containers()

        assert [c.id for c in result] == ["c1"]

    async def test_inspect_by_panel_id(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1")})

        container = await runtime.inspect("c1")

        assert container is not None
        assert container.id == "c1"
        mock_container_api.list.assert_awaited_with(filters={"label": ["dockpanel.id=c1"]})

    async def test_inspect_foreign_container_by_docker_id(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id=None)})

        container = await runtime.inspect("d1")

        assert container is not None
        assert container.id == "d1"

    async def test_inspect_panel_container_by_docker_id(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        """Panel containers are only addressable by their stable id."""
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1")})

        assert await runtime.inspect("d1") is None

    async def test_inspect_unknown(self, runtime: DockerRuntime) -> None:
        assert await runtime.inspect("missing") is None

    async def test_list_images(
        self, runtime: DockerRuntime, mock_image_api: AsyncMock
    ) -> None:
        mock_image_api.list.return_value = [
            {"RepoTags": ["python:3.12", "python:latest"]},
            {"RepoTags": ["<none>:<none>"]},
            {"RepoTags": None},
            {"RepoTags": ["alpine:3.21", "python:3.12"]},
        ]

        assert await runtime.list_images() == ["alpine:3.21", "python:3.12", "python:latest"]

    async def test_create(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        mock_image_api: AsyncMock,
    ) -> None:
        spec = RunSpec(
            image="nginx:1.27",
            name="proxy",
            args=[],
            ports=[PortMapping(host_port=8080, container_port=80)],
        )

        await runtime.create("c1", spec)

        mock_image_api.ensure.assert_awaited_once_with("nginx:1.27")
        config: ContainerConfig = mock_container_api.create.await_args.args[0]
        assert config.name == "proxy"
        assert config.labels == {"dockpanel.id": "c1"}
        assert config.host_config.port_bindings == {"80/tcp": "8080"}
        assert "Cmd" not in config.to_api()
        mock_container_api.start.assert_not_awaited()

    async def test_start_uses_docker_id(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1", running=False)})

        await runtime.start("c1")

        mock_container_api.start.assert_awaited_once_with("d1")
        mock_container_api.create.assert_not_awaited()

    async def test_start_unknown(self, runtime: DockerRuntime) -> None:
        with pytest.raises(ContainerNotFoundError):
            await runtime.start("missing")

    async def test_stop_passes_grace_period(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1")})

        await runtime.stop("c1")

        mock_container_api.stop.assert_awaited_once_with("d1", timeout=7)

    async def test_remove_never_forces(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1", running=False)})

        await runtime.remove("c1")

        mock_container_api.remove.assert_awaited_once_with("d1", force=False)

    async def test_update_stopped_recreates(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        mock_image_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(
            mock_container_api,
            {
                "d1": payload_factory(
                    docker_id="d1",
                    panel_id="c1",
                    running=False,
                    labels={PROJECT_LABEL: "shop"},
                )
            },
        )
        spec = RunSpec(image="alpine:3.21", name="web", args=["sh", "-c", "echo hi"])

        await runtime.update("c1", spec)

        mock_container_api.remove.assert_awaited_once_with("d1", force=False)
        config: ContainerConfig = mock_container_api.create.await_args.args[0]
        assert config.cmd == ["sh", "-c", "echo hi"]
        assert config.labels == {PROJECT_LABEL: "shop", "dockpanel.id": "c1"}
        # Replacement created unnamed, old removed, then the name handed over
        assert config.name == ""
        order = [c[0] for c in mock_container_api.mock_calls if c[0] in ("create", "remove", "rename")]
        assert order == ["create", "remove", "rename"]
        mock_container_api.rename.assert_awaited_once_with("new-docker-id", "web")
        mock_image_api.ensure.assert_awaited_once_with("alpine:3.21")
        mock_container_api.start.assert_not_awaited()

    async def test_update_create_failure_keeps_container(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1", running=False)})
        mock_container_api.create.side_effect = httpx.ReadError("daemon went away")

        with pytest.raises(httpx.ReadError):
            await runtime.update("c1", RunSpec(image="alpine:3.21", name="web", args=["true"]))

        mock_container_api.remove.assert_not_awaited()
        shown = await runtime.inspect("c1")
        assert shown is not None
        assert shown.args == ["sleep", "3600"]

    async def test_update_name_taken_by_other_container(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(
            mock_container_api,
            {
                "d1": payload_factory(docker_id="d1", panel_id="c1", running=False),
                "taken": payload_factory(docker_id="d2", panel_id=None, name="/taken"),
            },
        )

        with pytest.raises(InvalidSpecError):
            await runtime.update("c1", RunSpec(image="alpine:3.21", name="taken"))

        mock_container_api.create.assert_not_awaited()
        mock_container_api.remove.assert_not_awaited()
        assert await runtime.inspect("c1") is not None

    async def test_update_remove_failure_discards_replacement(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1", running=False)})
        mock_container_api.remove.side_effect = [httpx.ReadError("conflict"), None]

        with pytest.raises(httpx.ReadError):
            await runtime.update("c1", RunSpec(image="alpine:3.21", args=["true"]))

        assert mock_container_api.remove.await_args_list == [
            call("d1", force=False),
            call("new-docker-id", force=True),
        ]
        mock_container_api.rename.assert_not_awaited()

    async def test_failed_recreate_on_start_keeps_update(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        payloads = {"d1": payload_factory(docker_id="d1", panel_id="c1", running=True)}
        serve(mock_container_api, payloads)
        await runtime.update("c1", RunSpec(image="alpine:3.21", name="web", args=["sleep", "60"]))
        payloads["d1"]["State"] = {"Running": False, "Status": "exited"}

        mock_container_api.create.side_effect = httpx.ReadError("daemon went away")
        with pytest.raises(httpx.ReadError):
            await runtime.start("c1")

        mock_container_api.remove.assert_not_awaited()
        mock_container_api.start.assert_not_awaited()
        shown = await runtime.inspect("c1")
        assert shown is not None
        assert shown.args == ["sleep", "60"]

        # Next start applies the held configuration
        mock_container_api.create.side_effect = None
        await runtime.start("c1")
        mock_container_api.start.assert_awaited_once_with("new-docker-id")

    async def test_list_prefers_original_during_recreate(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        """Two containers share an id only mid-recreate; the older one is reported."""
        old = payload_factory(docker_id="d1", panel_id="c1", cmd=["old"])
        new = payload_factory(docker_id="d2", panel_id="c1", cmd=["new"])
        mock_container_api.list.return_value = [
            {"Id": "d2", "Created": 200},
            {"Id": "d1", "Created": 100},
        ]
        mock_container_api.inspect.side_effect = lambda ref: {"d1": old, "d2": new}[ref]

        listed = await runtime.list_containers()
        shown = await runtime.inspect("c1")

        assert [c.args for c in listed] == [["old"]]
        assert shown is not None
        assert shown.args == ["old"]

    async def test_update_running_defers_until_start(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        payloads = {"d1": payload_factory(docker_id="d1", panel_id="c1", running=True)}
        serve(mock_container_api, payloads)
        spec = RunSpec(
            image="alpine:3.21",
            name="web",
            args=["sleep", "60"],
            ports=[PortMapping(host_port=9000, container_port=9000)],
        )

        await runtime.update("c1", spec)

        # Still running untouched
        mock_container_api.remove.assert_not_awaited()
        mock_container_api.create.assert_not_awaited()
        mock_container_api.stop.assert_not_awaited()

        # Reads show the configuration the next start will use
        shown = await runtime.inspect("c1")
        assert shown is not None
        assert shown.args == ["sleep", "60"]
        assert shown.ports == [PortMapping(host_port=9000, container_port=9000)]

        # Stopped by the user, then started again
        payloads["d1"]["State"] = {"Running": False, "Status": "exited"}
        await runtime.start("c1")

        mock_container_api.remove.assert_awaited_once_with("d1", force=False)
        mock_container_api.start.assert_awaited_once_with("new-docker-id")

        # Applied once
        mock_container_api.create.reset_mock()
        await runtime.start("c1")
        mock_container_api.create.assert_not_awaited()

    async def test_remove_drops_deferred_update(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        payloads = {"d1": payload_factory(docker_id="d1", panel_id="c1", running=True)}
        serve(mock_container_api, payloads)
        await runtime.update("c1", RunSpec(image="alpine:3.21", args=["true"]))

        payloads["d1"]["State"] = {"Running": False, "Status": "exited"}
        await runtime.remove("c1")

        shown = await runtime.inspect("c1")
        assert shown is not None
        assert shown.args == ["sleep", "3600"]

    async def test_logs_streams_chunks(
        self,
        runtime: DockerRuntime,
        mock_container_api: AsyncMock,
        payload_factory,
    ) -> None:
        serve(mock_container_api, {"d1": payload_factory(docker_id="d1", panel_id="c1")})

        async def chunks(ref: str):
            yield b"line 1\n"
            yield b"line 2\n"

        mock_container_api.stream_logs.side_effect = chunks

        received = [chunk async for chunk in runtime.logs("c1")]

        assert received == [b"line 1\n", b"line 2\n"]
        mock_container_api.stream_logs.assert_called_once_with("d1")

    async def test_logs_unknown(self, runtime: DockerRuntime) -> None:
        with pytest.raises(ContainerNotFoundError):
            async for _ in runtime.logs("missing"):
                pass
