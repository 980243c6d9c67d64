"""Docker helpers for integration tests."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from urllib.parse import urlparse

import docker
from docker.client import DockerClient
from docker.models.containers import Container


def get_docker_client() -> DockerClient:
    """Docker client configured from DOCKER_HOST and friends."""
    return docker.from_env()


def published_host(client: DockerClient) -> str:
    """Host on which published container ports are reachable."""
    base_url = client.api.base_url
    if base_url.startswith(("unix://", "npipe://", "http+docker://")):
        return "localhost"
    return urlparse(base_url).hostname or "localhost"


@dataclass
class RunningContainer:
    """A started container and the host its ports are published on."""

    container: Container
    host: str

    def port(self, container_port: int) -> int:
        """Host port bound to a TCP container port."""
        self.container.reload()
        key = f"{container_port}/tcp"
        bindings = self.container.attrs["NetworkSettings"]["Ports"].get(key)
        if not bindings:
            raise RuntimeError(f"Port {key} is not published by {self.container.short_id}")
        return int(bindings[0]["HostPort"])


@contextmanager
def run_container(
    client: DockerClient,
    image: str,
    *,
    env: dict[str, str] | None = None,
    ports: Mapping[str, int | None] | None = None,
) -> Iterator[RunningContainer]:
    """Start a detached container and remove it, with its volumes, on exit."""
    container = client.containers.run(image, detach=True, environment=env, ports=ports)
    try:
        yield RunningContainer(container=container, host=published_host(client))
    finally:
        container.remove(force=True, v=True)
