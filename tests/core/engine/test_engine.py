# tests/core/engine/test_engine.py
"""
Testes do Engine de execução do lote.

Os testes asseguram que:
- Steps executam na ordem planejada e recebem SUCCESS
- `steps.<id>.enabled = false` produz SKIPPED sem executar o Step
- dependentes de um Step FAILED são pulados
- com `engine.fail_fast`, a execução para no primeiro FAILED
- exceções viram payload de erro (sem stack trace)
- IntakeException preserva message/details/hint no payload
- retorno que não é StepResult vira ENGINE_CONFIGURATION_ERROR

Decisões arquiteturais:
    - O Engine não tenta recuperação nem retry
    - Falhas são dados (StepResult FAILED), nunca exceções propagadas
"""

import pytest

try:
    from nexus_intake.core.engine.engine import Engine
    from nexus_intake.core.errors import ENGINE_CONFIGURATION_ERROR, ENGINE_EXECUTION_ERROR
    from nexus_intake.core.exceptions import FatalParseError
    from nexus_intake.core.pipeline.types import StepStatus
except Exception as e:  # noqa: BLE001
    Engine = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing Engine. Implement:
- src/nexus_intake/core/engine/engine.py (Engine)
Import error: {_IMPORT_ERR}
""")


class FailingStep:
    """Step duck-typed que sempre levanta RuntimeError."""

    kind = None

    def __init__(self, step_id="fail", depends_on=None):
        self.id = step_id
        self.depends_on = depends_on or []

    def run(self, ctx):
        raise RuntimeError("boom")


class IntakeFailingStep(FailingStep):
    def run(self, ctx):
        raise FatalParseError(message="no data rows found", details={"format": "csv"}, hint="check the file")


class BadReturnStep(FailingStep):
    def run(self, ctx):
        return {"status": "success"}


def test_happy_path(DummyStep, ctx):
    _require_imports()

    steps = [DummyStep(step_id="a"), DummyStep(step_id="b", depends_on=["a"])]
    result = Engine(steps=steps, ctx=ctx).run()

    assert result.steps["a"].status == StepStatus.SUCCESS
    assert result.steps["b"].status == StepStatus.SUCCESS
    assert list(result.steps) == ["a", "b"]
    assert ctx.get_artifact("b.ok") is True
    assert result.failed() is None


def test_skip_by_config(DummyStep, ctx):
    _require_imports()

    ctx.config["steps"] = {"b": {"enabled": False}}
    result = Engine(steps=[DummyStep(step_id="a"), DummyStep(step_id="b")], ctx=ctx).run()

    assert result.steps["b"].status == StepStatus.SKIPPED
    assert not ctx.has_artifact("b.ok")
    assert any(e["message"] == "step skipped by config" for e in ctx.events)


def test_fail_fast_stops_execution(DummyStep, ctx):
    _require_imports()

    ctx.config["engine"] = {"fail_fast": True}
    steps = [FailingStep(step_id="a"), DummyStep(step_id="z")]
    result = Engine(steps=steps, ctx=ctx).run()

    assert result.steps["a"].status == StepStatus.FAILED
    assert "z" not in result.steps


def test_without_fail_fast_dependents_are_skipped(DummyStep, ctx):
    _require_imports()

    ctx.config["engine"] = {"fail_fast": False}
    steps = [
        FailingStep(step_id="a"),
        DummyStep(step_id="b", depends_on=["a"]),
        DummyStep(step_id="c"),
    ]
    result = Engine(steps=steps, ctx=ctx).run()

    assert result.steps["a"].status == StepStatus.FAILED
    assert result.steps["b"].status == StepStatus.SKIPPED
    assert result.steps["c"].status == StepStatus.SUCCESS


def test_unexpected_exception_becomes_payload(ctx):
    _require_imports()

    result = Engine(steps=[FailingStep()], ctx=ctx).run()
    error = result.steps["fail"].payload["error"]

    assert error["type"] == ENGINE_EXECUTION_ERROR
    assert error["message"] == "boom"
    assert error["details"] == {"exception_class": "RuntimeError"}
    assert ctx.events[-1]["level"] == "error"


def test_intake_exception_keeps_structure(ctx):
    _require_imports()

    result = Engine(steps=[IntakeFailingStep()], ctx=ctx).run()
    error = result.steps["fail"].payload["error"]

    assert error["type"] == "FatalParseError"
    assert error["message"] == "no data rows found"
    assert error["details"] == {"format": "csv"}
    assert error["hint"] == "check the file"


def test_invalid_return_type(ctx):
    _require_imports()

    result = Engine(steps=[BadReturnStep()], ctx=ctx).run()

    assert result.steps["fail"].status == StepStatus.FAILED
    assert result.steps["fail"].payload["error"]["type"] == ENGINE_CONFIGURATION_ERROR


def test_context_warnings_are_merged_into_result(DummyStep, ctx):
    _require_imports()

    class WarningStep(DummyStep):
        def run(self, ctx):
            ctx.add_warning(step_id=self.id, message="careful")
            return super().run(ctx)

    result = Engine(steps=[WarningStep(step_id="w")], ctx=ctx).run()

    assert result.steps["w"].warnings == ["careful"]
