"""Triggers that hand work to the DeIdentification service."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

import requests

from deid_e2e_tester.configuration.runtime_settings import StimulusSettings

logger = logging.getLogger(__name__)


class StimulusError(Exception):
    """Raised when a stimulus cannot be dispatched."""


class HTTPSession(Protocol):  # pylint: disable=too-few-public-methods
    """Subset of ``requests.Session`` used for REST stimuli."""

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response: ...


@dataclass(frozen=True)
class StimulusReceipt:
    """Record that an action was dispatched at a given time."""

    dispatched_at: datetime
    job_id: str | None
    description: str


class StimulusDispatcher:
    """Dispatches file-drop and REST stimuli; the service's reaction is observed elsewhere."""

    def __init__(self, session: HTTPSession | None = None) -> None:
        self._session = session or requests.Session()

    def dispatch(self, settings: StimulusSettings) -> StimulusReceipt:
        if settings.kind == "none":
            return StimulusReceipt(datetime.now(UTC), None, "no stimulus")
        if settings.kind == "file_drop":
            return self._drop_file(settings)
        if settings.kind == "rest":
            return self._call_rest(settings)
        if settings.kind == "rest_batch":
            return self._call_rest_batch(settings)
        raise StimulusError(f"Unsupported stimulus kind: {settings.kind}")

    def _drop_file(self, settings: StimulusSettings) -> StimulusReceipt:
        if settings.source is None or settings.target_directory is None:
            raise StimulusError("file_drop requires a source file and a watch folder.")
        if not settings.source.is_file():
            raise StimulusError(f"Stimulus source file not found: {settings.source}")
        destination = settings.target_directory / settings.source.name
        dispatched_at = datetime.now(UTC)
        try:
            settings.target_directory.mkdir(parents=True, exist_ok=True)
            shutil.copy2(settings.source, destination)
        except OSError as exc:
            message = f"Failed to copy {settings.source} to {destination}: {exc}"
            raise StimulusError(message) from exc
        logger.info("Dropped %s into %s", settings.source.name, settings.target_directory)
        return StimulusReceipt(
            dispatched_at, None, f"copied {settings.source.name} to {destination}"
        )

    def _call_rest(self, settings: StimulusSettings) -> StimulusReceipt:
        dispatched_at = datetime.now(UTC)
        response = self._send(settings)
        job_id = _extract_job_id(response, settings.job_id_field)
        return StimulusReceipt(
            dispatched_at,
            job_id,
            f"{settings.method} {settings.url} -> HTTP {response.status_code}",
        )

    def _call_rest_batch(self, settings: StimulusSettings) -> StimulusReceipt:
        dispatched_at = datetime.now(UTC)
        for _ in range(settings.repeat):
            self._send(settings)
        return StimulusReceipt(
            dispatched_at,
            None,
            f"{settings.repeat} x {settings.method} {settings.url}",
        )

    def _send(self, settings: StimulusSettings) -> requests.Response:
        if settings.url is None:
            raise StimulusError("REST stimulus requires a url.")
        kwargs: dict[str, Any] = {
            "headers": dict(settings.headers),
            "timeout": settings.timeout_seconds,
        }
        if settings.json_body is not None:
            kwargs["json"] = settings.json_body
        elif settings.body is not None:
            kwargs["data"] = settings.body.encode("utf-8")
        try:
            response = self._session.request(settings.method, settings.url, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise StimulusError(f"{settings.method} {settings.url} failed: {exc}") from exc
        logger.info("%s %s -> HTTP %s", settings.method, settings.url, response.status_code)
        return response


def _extract_job_id(response: requests.Response, job_id_field: str | None) -> str | None:
    if not job_id_field:
        return None
    try:
        payload: Any = response.json()
    except ValueError as exc:
        raise StimulusError(f"Response is not JSON; cannot read '{job_id_field}'.") from exc
    for part in job_id_field.split("."):
        if not isinstance(payload, Mapping) or part not in payload:
            raise StimulusError(f"Response does not contain '{job_id_field}'.")
        payload = payload[part]
    if payload is None or isinstance(payload, Mapping | list):
        raise StimulusError(f"Response field '{job_id_field}' is not a scalar job id.")
    return str(payload)
