"""Configuration loader service."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from deid_e2e_tester.log_matching import ScanWindow, compile_job_pattern
from deid_e2e_tester.verification import BUILTIN_JOB_TYPES, JobTypeDefinition

from .runtime_settings import (
    REPORT_FORMATS,
    CleanupSettings,
    HarnessConfiguration,
    LogSettings,
    ReportSettings,
    ServiceSettings,
    StimulusSettings,
    TestDefinition,
)

STIMULUS_KINDS: tuple[str, ...] = ("file_drop", "rest", "rest_batch", "none")
_DEFAULT_REPORT_TITLE = "DeIdentification E2E Report"


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> HarnessConfiguration:
    """Load and validate the configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Configuration file is not valid UTF-8: {path}: {exc}") from exc
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    base_path = path.resolve().parent
    service = _parse_service_section(parsed.get("service"))
    log = _parse_log_section(parsed.get("log"), base_path)
    report = _parse_report_section(parsed.get("report"), base_path)
    cleanup = _parse_cleanup_section(parsed.get("cleanup"), base_path)
    job_types = _parse_job_types_section(parsed.get("job_types"))
    tests = _parse_tests_section(parsed.get("tests"), job_types, base_path)

    return HarnessConfiguration(
        path=path,
        service=service,
        log=log,
        report=report,
        cleanup=cleanup,
        job_types=job_types,
        tests=tests,
    )


def _parse_service_section(value: Any) -> ServiceSettings:
    section = _require_mapping(value, "service")
    return ServiceSettings(
        name=_require_non_empty_string(section.get("name"), "service.name"),
        status_timeout_seconds=_require_positive_int(
            section.get("status_timeout_seconds", 60), "service.status_timeout_seconds"
        ),
        poll_interval_seconds=_require_positive_int(
            section.get("poll_interval_seconds", 2), "service.poll_interval_seconds"
        ),
        start_if_stopped=_require_bool(
            section.get("start_if_stopped", False), "service.start_if_stopped"
        ),
    )


def _parse_log_section(value: Any, base_path: Path) -> LogSettings:
    section = _require_mapping(value, "log")
    raw_path = _require_non_empty_string(section.get("path"), "log.path")
    encoding = _require_non_empty_string(section.get("encoding", "utf-8"), "log.encoding")
    return LogSettings(path=_resolve_path(base_path, raw_path), encoding=encoding)


def _parse_report_section(value: Any, base_path: Path) -> ReportSettings:
    section = _optional_mapping(value, "report")
    output_dir = _require_non_empty_string(
        section.get("output_dir", "reports"), "report.output_dir"
    )
    formats = _normalize_string_sequence(section.get("formats"), "report.formats")
    if not formats:
        formats = REPORT_FORMATS
    unknown = [item for item in formats if item not in REPORT_FORMATS]
    if unknown:
        raise ConfigurationError(
            f"report.formats contains unsupported entries: {', '.join(unknown)} "
            f"(supported: {', '.join(REPORT_FORMATS)})."
        )
    title = _require_non_empty_string(section.get("title", _DEFAULT_REPORT_TITLE), "report.title")
    return ReportSettings(
        output_dir=_resolve_path(base_path, output_dir),
        formats=tuple(dict.fromkeys(formats)),
        title=title,
    )


def _parse_cleanup_section(value: Any, base_path: Path) -> CleanupSettings:
    section = _optional_mapping(value, "cleanup")
    directories = _normalize_string_sequence(
        section.get("clear_directories"), "cleanup.clear_directories"
    )
    return CleanupSettings(
        truncate_log=_require_bool(section.get("truncate_log", False), "cleanup.truncate_log"),
        clear_directories=tuple(_resolve_path(base_path, item) for item in directories),
    )


def _parse_job_types_section(value: Any) -> dict[str, JobTypeDefinition]:
    job_types = dict(BUILTIN_JOB_TYPES)
    section = _optional_mapping(value, "job_types")
    for name, definition in section.items():
        label = f"job_types.{name}"
        entry = _require_mapping(definition, label)
        base = job_types.get(name)
        if base is None:
            base = JobTypeDefinition(
                name=str(name),
                success_pattern=_require_non_empty_string(
                    entry.get("success_pattern"), f"{label}.success_pattern"
                ),
                failure_pattern=_require_non_empty_string(
                    entry.get("failure_pattern"), f"{label}.failure_pattern"
                ),
            )
        job_types[str(name)] = _apply_job_type_overrides(base, entry, label)
    return job_types


def _apply_job_type_overrides(
    base: JobTypeDefinition, entry: Mapping[str, Any], label: str
) -> JobTypeDefinition:
    changes: dict[str, Any] = {}
    for key in ("success_pattern", "failure_pattern"):
        if entry.get(key) is not None:
            pattern = _require_non_empty_string(entry.get(key), f"{label}.{key}")
            try:
                compile_job_pattern(pattern, None)
            except ValueError as exc:
                raise ConfigurationError(f"{label}.{key}: {exc}") from exc
            changes[key] = pattern
    if entry.get("requires_directory_evidence") is not None:
        changes["requires_directory_evidence"] = _require_bool(
            entry.get("requires_directory_evidence"), f"{label}.requires_directory_evidence"
        )
    if entry.get("minimum_lines") is not None:
        changes["minimum_lines"] = _require_positive_int(
            entry.get("minimum_lines"), f"{label}.minimum_lines"
        )
    if entry.get("scan_window") is not None:
        changes["scan_window"] = _parse_scan_window(entry, label)
    return dataclasses.replace(base, **changes) if changes else base


def _parse_scan_window(entry: Mapping[str, Any], label: str) -> ScanWindow:
    kind = _require_non_empty_string(entry.get("scan_window"), f"{label}.scan_window").lower()
    if kind == "full_file":
        return ScanWindow.full_file()
    if kind == "tail":
        return ScanWindow.tail(
            _require_positive_int(entry.get("tail_lines", 1), f"{label}.tail_lines")
        )
    raise ConfigurationError(f"{label}.scan_window must be 'full_file' or 'tail'.")


def _parse_tests_section(
    value: Any, job_types: Mapping[str, JobTypeDefinition], base_path: Path
) -> tuple[TestDefinition, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str) or not value:
        raise ConfigurationError("Configuration section 'tests' must be a non-empty list.")
    tests: list[TestDefinition] = []
    seen_names: set[str] = set()
    for index, item in enumerate(value):
        test = _parse_test(item, f"tests[{index}]", job_types, base_path)
        if test.name in seen_names:
            raise ConfigurationError(f"Duplicate test name '{test.name}' detected.")
        seen_names.add(test.name)
        tests.append(test)
    return tuple(tests)


def _parse_test(
    value: Any, label: str, job_types: Mapping[str, JobTypeDefinition], base_path: Path
) -> TestDefinition:
    entry = _require_mapping(value, label)
    name = _require_non_empty_string(entry.get("name"), f"{label}.name")
    job_type_name = _require_non_empty_string(entry.get("job_type"), f"{label}.job_type")
    job_type = job_types.get(job_type_name)
    if job_type is None:
        raise ConfigurationError(
            f"{label}.job_type '{job_type_name}' is not defined "
            f"(known: {', '.join(sorted(job_types))})."
        )
    output_directory = _optional_string(entry.get("output_directory"), f"{label}.output_directory")
    return TestDefinition(
        name=name,
        job_type=_apply_job_type_overrides(job_type, entry, label),
        job_id=_optional_scalar_string(entry.get("job_id"), f"{label}.job_id"),
        stimulus=_parse_stimulus(entry.get("stimulus"), f"{label}.stimulus", base_path),
        output_directory=(
            _resolve_path(base_path, output_directory) if output_directory else None
        ),
        timeout_seconds=_require_positive_int(
            entry.get("timeout_seconds", 300), f"{label}.timeout_seconds"
        ),
        poll_interval_seconds=_require_positive_int(
            entry.get("poll_interval_seconds", 5), f"{label}.poll_interval_seconds"
        ),
        enabled=_require_bool(entry.get("enabled", True), f"{label}.enabled"),
    )


def _parse_stimulus(value: Any, label: str, base_path: Path) -> StimulusSettings:
    if value is None:
        return StimulusSettings(kind="none")
    section = _require_mapping(value, label)
    kind = _require_non_empty_string(section.get("kind"), f"{label}.kind").lower()
    if kind not in STIMULUS_KINDS:
        raise ConfigurationError(
            f"{label}.kind must be one of: {', '.join(STIMULUS_KINDS)}."
        )
    if kind == "none":
        return StimulusSettings(kind=kind)
    if kind == "file_drop":
        source = _require_non_empty_string(section.get("source"), f"{label}.source")
        target = _require_non_empty_string(section.get("watch_folder"), f"{label}.watch_folder")
        return StimulusSettings(
            kind=kind,
            source=_resolve_path(base_path, source),
            target_directory=_resolve_path(base_path, target),
        )
    return _parse_rest_stimulus(section, kind, label)


def _parse_rest_stimulus(section: Mapping[str, Any], kind: str, label: str) -> StimulusSettings:
    headers = _optional_mapping(section.get("headers"), f"{label}.headers")
    body = _optional_string(section.get("body"), f"{label}.body")
    json_body = section.get("json")
    if body and json_body is not None:
        raise ConfigurationError(f"{label} must not set both body and json.")
    default_repeat = 10 if kind == "rest_batch" else 1
    repeat = _require_positive_int(section.get("repeat", default_repeat), f"{label}.repeat")
    if kind == "rest" and repeat != 1:
        raise ConfigurationError(f"{label}.repeat is only supported for rest_batch.")
    return StimulusSettings(
        kind=kind,
        method=_require_non_empty_string(section.get("method", "POST"), f"{label}.method").upper(),
        url=_require_non_empty_string(section.get("url"), f"{label}.url"),
        headers={str(key): str(item) for key, item in headers.items()},
        body=body,
        json_body=json_body,
        job_id_field=_optional_string(section.get("job_id_field"), f"{label}.job_id_field"),
        repeat=repeat,
        timeout_seconds=_require_positive_int(
            section.get("timeout_seconds", 30), f"{label}.timeout_seconds"
        ),
    )


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        stripped = value.strip()
        return (stripped,) if stripped else ()
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _optional_scalar_string(value: Any, field_name: str) -> str | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _optional_string(value, field_name)


def _require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be true or false.")
    return value


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value
