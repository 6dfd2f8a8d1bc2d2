"""Tests for the validation request pipeline – no database required."""

import json

import pytest

from tmk_validator.config import PACKAGE_SCHEMA_DIR
from tmk_validator.pipeline.stages import build_validation_pipeline, run_validation
from tmk_validator.services.errors import (
    KeyCollisionError,
    MalformedInputError,
    RegistryNotReadyError,
    UnknownSchemaError,
)
from tmk_validator.services.registry import SchemaRegistry


def test_scenario_auto_fix(scenario_registry):
    report = run_validation('{"Model": "task"}', scenario_registry, detailed=True, auto_fix=True)
    assert report.normalized == {"model": "Task"}
    assert report.valid is True
    assert (report.score, report.max) == (4, 4)
    assert report.fields["steps"].reason == "vacuously correct"


def test_scenario_missing_optional_field_is_full_credit(scenario_registry):
    report = run_validation('{"model": "Task"}', scenario_registry, detailed=True)
    assert report.fields["steps"].score == 2
    assert (report.score, report.max) == (4, 4)


def test_valid_task(registry, make_task):
    report = run_validation(json.dumps(make_task()), registry)
    assert report.schema_name == "Task"
    assert report.valid is True
    assert report.score == report.max == 16
    assert report.errors is None
    assert report.fields is None
    assert report.normalized is None


def test_auto_fix_repairs_casing(registry, make_task):
    sloppy = {
        "MODEL": "task",
        "Name": "Make Tea",
        "GOAL": "A cup of tea is ready",
        "SubTasks": [{"Name": "Boil Water", "KIND": "primitive"}],
    }
    report = run_validation(json.dumps(sloppy), registry, auto_fix=True)
    assert report.valid is True
    assert report.normalized == {
        "model": "Task",
        "name": "Make Tea",
        "goal": "A cup of tea is ready",
        "subtasks": [{"name": "Boil Water", "kind": "Primitive"}],
    }


def test_without_auto_fix_sloppy_model_is_unknown(registry):
    with pytest.raises(UnknownSchemaError, match='Invalid or missing "model" field'):
        run_validation('{"Model": "Task"}', registry)


def test_invalid_document_is_a_result(registry, make_task):
    raw = json.dumps(make_task(goal="", subtasks=[{"name": "Boil Water"}]))
    report = run_validation(raw, registry, detailed=True, show_raw_errors=True)
    assert report.valid is False
    assert report.error_count == 2
    assert {e.instance_path for e in report.errors} == {"/goal", "/subtasks/0"}
    assert report.fields["goal"].score == 1
    assert report.fields["subtasks"].reason == "required: 'kind' is a required property"
    assert report.score == report.max - 2


def test_raw_errors_hidden_unless_requested(registry):
    report = run_validation('{"model": "Method"}', registry)
    assert report.valid is False
    assert report.errors is None
    assert report.error_count == 3


def test_malformed_json(registry):
    with pytest.raises(MalformedInputError, match="Invalid JSON"):
        run_validation('{"model": "Task",', registry)


@pytest.mark.parametrize("raw", ['{"model": "Widget"}', "{}", '["Task"]', '{"model": 42}', '"Task"'])
def test_unresolvable_model(registry, raw):
    with pytest.raises(UnknownSchemaError, match="Task, Method, Knowledge"):
        run_validation(raw, registry, auto_fix=True)


def test_key_collision_stops_request(registry):
    with pytest.raises(KeyCollisionError):
        run_validation('{"model": "Task", "NAME": "a", "name": "b"}', registry, auto_fix=True)


def test_key_collision_last_writer_mode(registry):
    raw = '{"model": "Task", "NAME": "a", "name": "b", "goal": "g"}'
    report = run_validation(raw, registry, auto_fix=True, on_collision="last")
    assert report.normalized["name"] == "b"


def test_registry_must_be_loaded():
    with pytest.raises(RegistryNotReadyError):
        run_validation('{"model": "Task"}', SchemaRegistry(PACKAGE_SCHEMA_DIR, ["Task"]))


def test_step_summary(registry, make_task):
    report = run_validation(json.dumps(make_task()), registry)
    assert list(report.steps) == ["parse", "resolve_model", "normalize", "check", "score"]
    assert all(step["status"] == "success" for step in report.steps.values())


def test_pipeline_shape():
    pipeline = build_validation_pipeline()
    assert pipeline.execution_order() == ["parse", "resolve_model", "normalize", "check", "score"]


def test_deeply_nested_json_is_malformed(registry):
    raw = '{"model": "Task", "x": ' + "[" * 100000 + "]" * 100000 + "}"
    with pytest.raises(MalformedInputError, match="nesting too deep"):
        run_validation(raw, registry)


def test_scoring_reuses_registry_checker(registry, make_task, monkeypatch):
    def no_compile(schema):
        raise AssertionError("schema recompiled during scoring")

    monkeypatch.setattr("tmk_validator.services.scoring.compile_schema", no_compile)
    report = run_validation(json.dumps(make_task()), registry)
    assert report.score == report.max


def test_unknown_collision_mode_rejected(registry):
    with pytest.raises(ValueError, match="Unknown collision mode"):
        run_validation('{"model": "Task"}', registry, auto_fix=True, on_collision="strict")
