"""Configuration loader tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from deid_e2e_tester.configuration.loader import ConfigurationError, load_configuration
from deid_e2e_tester.log_matching import ScanWindow


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


_MINIMAL_CONFIG = """
service:
  name: DeIdService
log:
  path: logs/service.log
tests:
  - name: sync call
    job_type: rest_sync
    job_id: 100
"""


def test_loads_yaml_configuration_with_defaults(tmp_path: Path) -> None:
    config_path = _write_file(tmp_path / "config.yaml", _MINIMAL_CONFIG)

    configuration = load_configuration(config_path)

    assert configuration.service.name == "DeIdService"
    assert configuration.service.status_timeout_seconds == 60
    assert configuration.service.poll_interval_seconds == 2
    assert configuration.service.start_if_stopped is False
    assert configuration.log.path == (tmp_path / "logs" / "service.log").resolve()
    assert configuration.log.encoding == "utf-8"
    assert configuration.report.output_dir == (tmp_path / "reports").resolve()
    assert configuration.report.formats == ("html", "json", "xlsx")
    assert configuration.report.title == "DeIdentification E2E Report"
    assert configuration.cleanup.truncate_log is False
    assert configuration.cleanup.clear_directories == ()

    test = configuration.tests[0]
    assert test.name == "sync call"
    assert test.job_type.name == "rest_sync"
    assert test.job_id == "100"
    assert test.stimulus.kind == "none"
    assert test.output_directory is None
    assert test.timeout_seconds == 300
    assert test.poll_interval_seconds == 5
    assert test.enabled is True


def test_loads_json_configuration_with_stimuli(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.json",
        json.dumps(
            {
                "service": {"name": "DeIdService", "start_if_stopped": True},
                "log": {"path": str(tmp_path / "service.log"), "encoding": "cp1252"},
                "report": {"formats": ["json"], "title": "Nightly"},
                "cleanup": {"truncate_log": True, "clear_directories": ["out"]},
                "tests": [
                    {
                        "name": "drop",
                        "job_type": "watch_folder",
                        "output_directory": "out",
                        "stimulus": {
                            "kind": "file_drop",
                            "source": "fixtures/study.dcm",
                            "watch_folder": "watch",
                        },
                    },
                    {
                        "name": "batch",
                        "job_type": "part10",
                        "enabled": False,
                        "stimulus": {
                            "kind": "rest_batch",
                            "url": "http://deid.local/api/part10",
                            "json": {"studyUid": "1.2.3"},
                        },
                    },
                    {
                        "name": "single",
                        "job_type": "rest_sync",
                        "stimulus": {
                            "kind": "rest",
                            "method": "put",
                            "url": "http://deid.local/api/jobs",
                            "headers": {"X-Api-Key": "key"},
                            "job_id_field": "jobId",
                        },
                    },
                ],
            }
        ),
    )

    configuration = load_configuration(config_path)

    assert configuration.service.start_if_stopped is True
    assert configuration.log.path == tmp_path / "service.log"
    assert configuration.log.encoding == "cp1252"
    assert configuration.report.formats == ("json",)
    assert configuration.cleanup.clear_directories == ((tmp_path / "out").resolve(),)

    drop, batch, single = configuration.tests
    assert drop.stimulus.source == (tmp_path / "fixtures" / "study.dcm").resolve()
    assert drop.stimulus.target_directory == (tmp_path / "watch").resolve()
    assert drop.output_directory == (tmp_path / "out").resolve()
    assert batch.enabled is False
    assert batch.stimulus.repeat == 10
    assert batch.stimulus.json_body == {"studyUid": "1.2.3"}
    assert single.stimulus.method == "PUT"
    assert single.stimulus.headers == {"X-Api-Key": "key"}
    assert single.stimulus.job_id_field == "jobId"


def test_custom_job_type_and_overrides_are_applied(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        _MINIMAL_CONFIG
        + """
job_types:
  anonymize_tags:
    success_pattern: "Tags anonymized for {job_id}"
    failure_pattern: "Tag anonymization failed"
    scan_window: tail
    tail_lines: 2
  block_list:
    minimum_lines: 3
""",
    )

    configuration = load_configuration(config_path)

    custom = configuration.job_types["anonymize_tags"]
    assert custom.scan_window == ScanWindow.tail(2)
    assert custom.requires_directory_evidence is False
    assert configuration.job_types["block_list"].minimum_lines == 3
    assert configuration.job_types["block_list"].success_pattern == "for jobID {job_id} took"


def test_per_test_overrides_do_not_change_shared_job_type(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
service: {name: DeIdService}
log: {path: service.log}
tests:
  - name: strict
    job_type: rest_sync
    requires_directory_evidence: true
  - name: default
    job_type: rest_sync
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.tests[0].job_type.requires_directory_evidence is True
    assert configuration.tests[1].job_type.requires_directory_evidence is False


def test_missing_configuration_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_configuration(tmp_path / "missing.yaml")


def test_configuration_file_that_is_not_utf8_raises(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_bytes(b"\xff\xfes\x00e\x00r\x00v\x00i\x00c\x00e\x00")

    with pytest.raises(ConfigurationError, match="not valid UTF-8"):
        load_configuration(config_path)


def test_missing_service_section_raises(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        "log: {path: service.log}\ntests: [{name: a, job_type: rest_sync}]\n",
    )

    with pytest.raises(ConfigurationError, match="'service' is required"):
        load_configuration(config_path)


def test_empty_tests_section_raises(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        "service: {name: DeIdService}\nlog: {path: service.log}\ntests: []\n",
    )

    with pytest.raises(ConfigurationError, match="non-empty list"):
        load_configuration(config_path)


def test_unknown_job_type_lists_known_types(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        "service: {name: DeIdService}\nlog: {path: service.log}\n"
        "tests: [{name: a, job_type: dicomweb}]\n",
    )

    with pytest.raises(ConfigurationError, match="known: block_list, part10, rest_sync"):
        load_configuration(config_path)


def test_duplicate_test_names_raise(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        "service: {name: DeIdService}\nlog: {path: service.log}\n"
        "tests: [{name: a, job_type: rest_sync}, {name: a, job_type: block_list}]\n",
    )

    with pytest.raises(ConfigurationError, match="Duplicate test name 'a'"):
        load_configuration(config_path)


def test_invalid_pattern_raises(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        _MINIMAL_CONFIG + "job_types:\n  rest_sync:\n    success_pattern: 'Job ID: ('\n",
    )

    with pytest.raises(ConfigurationError, match="job_types.rest_sync.success_pattern"):
        load_configuration(config_path)


def test_unsupported_report_format_raises(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml", _MINIMAL_CONFIG + "report: {formats: [pdf]}\n"
    )

    with pytest.raises(ConfigurationError, match="unsupported entries: pdf"):
        load_configuration(config_path)


def test_boolean_timeout_is_rejected(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        "service: {name: DeIdService}\nlog: {path: service.log}\n"
        "tests: [{name: a, job_type: rest_sync, timeout_seconds: true}]\n",
    )

    with pytest.raises(ConfigurationError, match="timeout_seconds must be an integer"):
        load_configuration(config_path)


def test_rest_stimulus_rejects_body_and_json_together(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
service: {name: DeIdService}
log: {path: service.log}
tests:
  - name: a
    job_type: rest_sync
    stimulus: {kind: rest, url: "http://x", body: "raw", json: {a: 1}}
""",
    )

    with pytest.raises(ConfigurationError, match="both body and json"):
        load_configuration(config_path)


def test_rest_stimulus_rejects_repeat(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
service: {name: DeIdService}
log: {path: service.log}
tests:
  - name: a
    job_type: rest_sync
    stimulus: {kind: rest, url: "http://x", repeat: 3}
""",
    )

    with pytest.raises(ConfigurationError, match="only supported for rest_batch"):
        load_configuration(config_path)


def test_unknown_stimulus_kind_raises(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
service: {name: DeIdService}
log: {path: service.log}
tests:
  - name: a
    job_type: rest_sync
    stimulus: {kind: email}
""",
    )

    with pytest.raises(ConfigurationError, match="kind must be one of"):
        load_configuration(config_path)


def test_configuration_root_must_be_a_mapping(tmp_path: Path) -> None:
    config_path = _write_file(tmp_path / "config.yaml", "- just\n- a list\n")

    with pytest.raises(ConfigurationError, match="root must be a mapping"):
        load_configuration(config_path)
