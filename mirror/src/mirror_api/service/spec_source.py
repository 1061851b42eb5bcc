"""Upstream spec source backed by the RubyGems v2 JSON API."""

from __future__ import annotations

import json
import threading
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote, urlencode, urljoin

import requests
from requests import Response

from mirror_api.config.settings import get_settings
from mirror_api.db.models.dependency import SCOPE_DEVELOPMENT, SCOPE_RUNTIME
from mirror_api.domain.models import DependencySpec, GemSpec, Payload
from mirror_api.errors import MalformedSpecError, SpecTransportError

_SCOPES = (SCOPE_RUNTIME, SCOPE_DEVELOPMENT)


class SpecSource(Protocol):
    def download_spec(self, payload: Payload) -> Optional[GemSpec]:
        ...

    def download_checksum(self, payload: Payload) -> Optional[str]:
        ...

    def forget(self, payload: Payload) -> None:
        """Drop anything held for ``payload`` once its job is done with it."""
        ...


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_dependencies(raw: Any) -> tuple[DependencySpec, ...]:
    if not raw:
        return ()
    if not isinstance(raw, dict):
        raise MalformedSpecError("Spec dependencies must be an object keyed by scope.")
    dependencies: list[DependencySpec] = []
    for scope in _SCOPES:
        for item in raw.get(scope) or []:
            if not isinstance(item, dict) or not item.get("name"):
                raise MalformedSpecError(f"Invalid {scope} dependency entry: {item!r}")
            dependencies.append(
                DependencySpec(
                    name=str(item["name"]),
                    requirements=str(item.get("requirements") or ">= 0"),
                    scope=scope,
                )
            )
    return tuple(dependencies)


def parse_spec(data: dict[str, Any], payload: Payload) -> GemSpec:
    """Build a :class:`GemSpec` from an upstream version document."""

    name = _optional_text(data.get("name"))
    version = _optional_text(data.get("version") or data.get("number"))
    if not name or not version:
        raise MalformedSpecError(f"Spec for {payload.full_name} is missing name or version.")
    return GemSpec(
        name=name,
        version=version,
        platform=_optional_text(data.get("platform")) or payload.platform,
        dependencies=_parse_dependencies(data.get("dependencies")),
        required_ruby_version=_optional_text(data.get("ruby_version")),
        required_rubygems_version=_optional_text(data.get("rubygems_version")),
    )


class RubygemsSpecSource:
    def __init__(self, *, base_url: str, timeout_seconds: int) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._documents: Dict[Payload, dict[str, Any]] = {}

    @classmethod
    def from_settings(cls) -> RubygemsSpecSource:
        settings = get_settings()
        return cls(
            base_url=settings.upstream_url,
            timeout_seconds=int(settings.upstream_timeout_seconds),
        )

    def download_spec(self, payload: Payload) -> Optional[GemSpec]:
        data = self._fetch(payload)
        if data is None:
            return None
        return parse_spec(data, payload)

    def download_checksum(self, payload: Payload) -> Optional[str]:
        data = self._fetch(payload)
        if data is None:
            return None
        return _optional_text(data.get("sha"))

    def forget(self, payload: Payload) -> None:
        with self._lock:
            self._documents.pop(payload, None)

    def _fetch(self, payload: Payload) -> Optional[dict[str, Any]]:
        # Spec and checksum share one document until the job forgets it; a 404 is never held.
        with self._lock:
            cached = self._documents.get(payload)
        if cached is not None:
            return cached
        data = self._fetch_version(payload)
        if data is not None:
            with self._lock:
                self._documents[payload] = data
        return data

    def _fetch_version(self, payload: Payload) -> Optional[dict[str, Any]]:
        path = (
            f"/api/v2/rubygems/{quote(payload.name, safe='')}"
            f"/versions/{quote(payload.version, safe='')}.json"
        )
        response = self._request(path, params={"platform": payload.platform})
        if response is None:
            return None
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise MalformedSpecError(f"Upstream returned invalid JSON for {payload.full_name}.") from exc
        if not isinstance(data, dict):
            raise MalformedSpecError(f"Upstream returned a non-object spec for {payload.full_name}.")
        return data

    def _request(self, path: str, *, params: dict[str, object] | None = None) -> Response | None:
        url = self._build_url(path, params=params)
        try:
            response = requests.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise SpecTransportError(str(exc)) from exc
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise SpecTransportError(
                f"Upstream request failed with status {response.status_code}."
            )
        return response

    def _build_url(self, path: str, *, params: dict[str, object] | None = None) -> str:
        url = urljoin(f"{self._base_url}/", path.lstrip("/"))
        if params:
            query = urlencode({key: value for key, value in params.items() if value is not None})
            if query:
                return f"{url}?{query}"
        return url


__all__ = ["RubygemsSpecSource", "SpecSource", "parse_spec"]
