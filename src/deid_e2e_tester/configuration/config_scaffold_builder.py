"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "config.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Test configuration template for deid-e2e-tester.
# Replace every <REQUIRED> placeholder before running run or service-status.
# Replace <OPTIONAL> placeholders only when your setup needs them.
# Relative paths are resolved against the directory of this file.

service:
  # Windows service name as shown by `sc query`.
  name: "<REQUIRED>"
  status_timeout_seconds: "<OPTIONAL>"
  poll_interval_seconds: "<OPTIONAL>"
  start_if_stopped: "<OPTIONAL>"

log:
  # Shared, append-only log written by the DeIdentification service.
  path: "<REQUIRED>"
  encoding: "<OPTIONAL>"

report:
  output_dir: "<OPTIONAL>"
  # Any of: html, json, xlsx
  formats:
    - "<OPTIONAL>"
  title: "<OPTIONAL>"

cleanup:
  # Only applied to live runs, before the first test.
  truncate_log: "<OPTIONAL>"
  clear_directories:
    - "<OPTIONAL>"

# Built-in job types: rest_sync, watch_folder, block_list, part10.
# Add or override job types here; {job_id} is replaced by the test job id.
# job_types:
#   custom_job:
#     success_pattern: "<OPTIONAL>"
#     failure_pattern: "<OPTIONAL>"
#     requires_directory_evidence: "<OPTIONAL>"
#     scan_window: "<OPTIONAL>"   # full_file or tail
#     tail_lines: "<OPTIONAL>"
#     minimum_lines: "<OPTIONAL>"

tests:
  - name: "<REQUIRED>"
    # One of the built-in or configured job types.
    job_type: "<REQUIRED>"
    job_id: "<OPTIONAL>"
    # Directory snapshotted before and after the stimulus.
    output_directory: "<OPTIONAL>"
    timeout_seconds: "<OPTIONAL>"
    poll_interval_seconds: "<OPTIONAL>"
    stimulus:
      # Choose one kind: file_drop, rest, rest_batch or none.
      kind: "<REQUIRED>"
      # file_drop:
      source: "<OPTIONAL>"
      watch_folder: "<OPTIONAL>"
      # rest / rest_batch:
      # method: "<OPTIONAL>"
      # url: "<OPTIONAL>"
      # headers: {}
      # body: "<OPTIONAL>"
      # json: {}
      # job_id_field: "<OPTIONAL>"
      # repeat: "<OPTIONAL>"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML test configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder test configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Test configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
