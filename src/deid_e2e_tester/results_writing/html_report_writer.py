"""HTML report rendering."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, select_autoescape

from deid_e2e_tester.result_aggregation import ReportSummary

from .report_models import RunMetadata

_REPORT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{ run.title }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        .header { border-bottom: 2px solid #3498db; padding-bottom: 20px; margin-bottom: 30px; }
        .verdict { font-size: 28px; font-weight: bold; }
        .PASSED, .Success { color: #1e8449; }
        .FAILED, .Failed, .Error { color: #c0392b; }
        .WARNING, .Warning, .InProgress, .NotFound, .Incomplete, .Unknown { color: #b9770e; }
        .summary-grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 20px; }
        .summary-card { background: #f8f9fa; padding: 20px; border-radius: 8px; }
        .metric { font-size: 24px; font-weight: bold; color: #2c3e50; }
        .result-table { width: 100%; border-collapse: collapse; margin-top: 20px; }
        .result-table th, .result-table td {
            padding: 10px; text-align: left; border-bottom: 1px solid #ddd; vertical-align: top;
        }
        .result-table th { background-color: #f8f9fa; }
        code { font-size: 12px; white-space: pre-wrap; }
    </style>
</head>
<body>
    <div class="header">
        <h1>{{ run.title }}</h1>
        <p class="verdict {{ summary.overall_outcome.value }}">
            {{ summary.overall_outcome.value }}</p>
        <p><strong>Run started:</strong> {{ run.run_start.isoformat() }}</p>
        <p><strong>Generated:</strong> {{ summary.generated_at.isoformat() }}</p>
        <p><strong>Configuration:</strong> {{ run.config_path }}</p>
        <p><strong>Log file:</strong> {{ run.log_path }}</p>
        {% if run.dry_run %}<p><strong>Dry run:</strong> no stimuli were dispatched.</p>{% endif %}
    </div>

    <div class="summary-grid">
        <div class="summary-card"><h3>Success rate</h3>
            <div class="metric">{{ summary.success_rate_percent }}%</div></div>
        <div class="summary-card"><h3>Succeeded</h3>
            <div class="metric">
                {{ summary.counts.succeeded }} / {{ summary.counts.total }}</div></div>
        <div class="summary-card"><h3>Failed</h3>
            <div class="metric">{{ summary.counts.failed }}</div></div>
        <div class="summary-card"><h3>Other</h3>
            <div class="metric">{{ summary.counts.other }}</div></div>
    </div>

    <h2>Service</h2>
    <p><strong>{{ run.service_name }}</strong>:
        <span class="{{ summary.service_health.value }}">{{ summary.service_health.value }}</span>
        {{ summary.service_details }}</p>

    <h2>Tests</h2>
    <table class="result-table">
        <thead>
            <tr>
                <th>Test</th>
                <th>Job type</th>
                <th>Outcome</th>
                <th>Details</th>
                <th>Evidence</th>
            </tr>
        </thead>
        <tbody>
            {% for result in summary.per_test %}
            <tr>
                <td>{{ result.name }}</td>
                <td>{{ result.job_type }}</td>
                <td class="{{ result.outcome.value }}">{{ result.outcome.value }}</td>
                <td>{{ result.details }}</td>
                <td>
                    {% if result.evidence.matched_line %}
                        <code>{{ result.evidence.matched_line }}</code><br>
                    {% endif %}
                    {% set delta = result.evidence.directory_delta %}
                    {% if delta %}files {{ "%+d"|format(delta.files_created) }},
                        dirs {{ "%+d"|format(delta.directories_created) }},
                        bytes {{ "%+d"|format(delta.bytes_increase) }}<br>{% endif %}
                    {{ result.evidence.total_lines_seen }} log line(s) seen
                </td>
            </tr>
            {% endfor %}
        </tbody>
    </table>
</body>
</html>
"""

_ENVIRONMENT = Environment(autoescape=select_autoescape(default_for_string=True))


def render_html_report(summary: ReportSummary, run_metadata: RunMetadata) -> str:
    """Render the summary as a standalone HTML page."""
    return _ENVIRONMENT.from_string(_REPORT_TEMPLATE).render(summary=summary, run=run_metadata)


def write_html_report(
    summary: ReportSummary, run_metadata: RunMetadata, output_path: Path | str
) -> Path:
    destination = Path(output_path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(render_html_report(summary, run_metadata), encoding="utf-8")
    return destination
