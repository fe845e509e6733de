"""Audit, redaction and diagnostics helpers."""

from __future__ import annotations

import json

import pytest

from apmloadgen.config import (
    audit_layers_summary,
    audit_lines,
    audit_text,
    check_environment,
    doctor,
    resolve_config,
    summarize_origins,
    to_redacted_dict,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def explained(apm_env):
    return resolve_config(
        ["--event-rate", "10/s", "--header", "X-Api-Key=hidden", "--header", "X-Trace=1"],
        environ=apm_env,
        explain=True,
    )


def test_audit_lines_show_origins_not_values(explained):
    cfg, sources = explained
    lines = audit_lines(cfg, sources)

    assert "server_url: env:ELASTIC_APM_SERVER_URL" in lines
    assert "secret_token: env:ELASTIC_APM_SECRET_TOKEN [REDACTED]" in lines
    assert "event_rate: flag:--event-rate" in lines
    assert "headers: flag:--header" in lines
    assert "ignore_errors: default" in lines
    assert "s3cr3t" not in audit_text(cfg, sources)


def test_layer_summary_counts(explained):
    _, sources = explained
    counts = summarize_origins(sources)
    assert counts["env"] == 3
    assert counts["flag"] == 2
    assert sum(counts.values()) == len(sources)

    summary = audit_layers_summary(sources)
    assert summary[0].startswith("default")
    assert any(line.startswith("env") and "3 fields" in line for line in summary)


def test_redacted_dict_is_json_safe_and_hides_secrets(explained):
    cfg, _ = explained
    data = to_redacted_dict(cfg)

    assert data["server_url"] == "https://apm.example.com:8200"
    assert data["secret_token"] == "***redacted***"
    assert data["api_key"] is None
    assert data["event_rate"] == "10/1s"
    assert data["headers"] == {"X-Api-Key": "***redacted***", "X-Trace": "1"}
    assert data["rewrites"]["span.name"] is False
    assert "s3cr3t" not in json.dumps(data)


def test_check_environment_redacts_secret_like_variables():
    env = {
        "ELASTIC_APM_SERVER_URL": "http://x:8200",
        "ELASTIC_APM_SECRET_TOKEN": "tok",
        "ELASTIC_APM_API_KEY": "key",
        "HOME": "/root",
    }
    assert check_environment(env) == {
        "ELASTIC_APM_SERVER_URL": "http://x:8200",
        "ELASTIC_APM_SECRET_TOKEN": "***redacted***",
        "ELASTIC_APM_API_KEY": "***redacted***",
    }


def test_doctor_reports_no_issues_for_sane_config():
    cfg = resolve_config(["--event-rate", "100/s"], environ={})
    assert doctor(cfg) == ["No issues detected."]


def test_doctor_flags_conflicts():
    cfg = resolve_config(
        ["--server", "https://apm:8200", "--secret-token", "a", "--api-key", "b"],
        environ={},
    )
    msgs = doctor(cfg)
    assert any("Both secret_token and api_key" in m for m in msgs)
    assert any("--secure" in m for m in msgs)
    assert any("unbounded" in m for m in msgs)


def test_debug_audit_is_emitted_as_warning():
    with pytest.warns(UserWarning, match="Config audit"):
        resolve_config([], environ={"APM_LOADGEN_DEBUG_CONFIG": "1"})
