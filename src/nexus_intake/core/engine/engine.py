# src/nexus_intake/core/engine/engine.py
"""
Engine de execução do DAG de Steps de um lote.

- Planeja a ordem com `plan_execution`.
- Pula Steps desabilitados por `steps.<id>.enabled = false`.
- Pula Steps cuja dependência falhou.
- Converte exceções em `IntakeErrorPayload` (sem stack trace para o
  operador) e devolve FAILED com `payload["error"]`.
- Com `engine.fail_fast`, interrompe no primeiro FAILED.

StepResult é imutável: qualquer enriquecimento (warnings do contexto) é
feito criando uma nova instância via `dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from nexus_intake.core.errors import (
    ENGINE_CONFIGURATION_ERROR,
    ENGINE_EXECUTION_ERROR,
    IntakeErrorPayload,
)
from nexus_intake.core.exceptions import IntakeException
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.step import Step
from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus

from .planner import plan_execution


@dataclass(frozen=True)
class EngineResult:
    """Resultados por Step, na ordem de execução."""

    steps: Dict[str, StepResult] = field(default_factory=dict)

    def failed(self) -> Optional[StepResult]:
        for r in self.steps.values():
            if r.status == StepStatus.FAILED:
                return r
        return None


class Engine:
    def __init__(self, *, steps: Sequence[Step], ctx: BatchContext):
        self.steps: List[Step] = list(steps)
        self.ctx: BatchContext = ctx

    def _is_enabled(self, step_id: str) -> bool:
        steps_cfg = (self.ctx.config or {}).get("steps", {}) or {}
        step_cfg = steps_cfg.get(step_id, {}) or {}
        return bool(step_cfg.get("enabled", True))

    def _fail_fast(self) -> bool:
        engine_cfg = (self.ctx.config or {}).get("engine", {}) or {}
        return bool(engine_cfg.get("fail_fast", True))

    def _exception_to_error(self, exc: Exception) -> IntakeErrorPayload:
        """IntakeException já traz message/details/hint; demais viram ENGINE_EXECUTION_ERROR."""
        if isinstance(exc, IntakeException):
            return IntakeErrorPayload(
                type=exc.__class__.__name__,
                message=str(exc) or "Erro de execução",
                details=dict(exc.details or {}),
                hint=exc.hint,
                decision_required=bool(exc.decision_required),
            )

        return IntakeErrorPayload(
            type=ENGINE_EXECUTION_ERROR,
            message=str(exc) or "Erro inesperado durante execução",
            details={"exception_class": exc.__class__.__name__},
            hint="Verifique os eventos do lote e a configuração",
            decision_required=False,
        )

    def _enrich(self, *, step_id: str, step: Step, result: StepResult) -> StepResult:
        # warnings do resultado + do contexto, sem duplicatas
        merged: List[str] = []
        for msg in list(result.warnings) + list(self.ctx.warnings.get(step_id, [])):
            if msg not in merged:
                merged.append(msg)
        kind = result.kind or getattr(step, "kind", StepKind.PARSE)
        return replace(result, step_id=step_id, kind=kind, warnings=merged)

    def _mk_result(
        self,
        *,
        step: Step,
        status: StepStatus,
        summary: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> StepResult:
        r = StepResult(
            step_id=step.id,
            kind=step.kind,
            status=status,
            summary=summary,
            payload=dict(payload or {}),
        )
        return self._enrich(step_id=step.id, step=step, result=r)

    def run(self) -> EngineResult:
        ordered = plan_execution(self.steps)

        results: Dict[str, StepResult] = {}
        for step in ordered:
            sid = step.id

            if not self._is_enabled(sid):
                results[sid] = self._mk_result(step=step, status=StepStatus.SKIPPED, summary="skipped by config")
                self.ctx.log(step_id=sid, level="info", message="step skipped by config")
                continue

            deps = list(getattr(step, "depends_on", []) or [])
            if any(results.get(d) and results[d].status == StepStatus.FAILED for d in deps):
                results[sid] = self._mk_result(
                    step=step,
                    status=StepStatus.SKIPPED,
                    summary="skipped due to failed dependency",
                )
                continue

            try:
                step_result = step.run(self.ctx)
                if not isinstance(step_result, StepResult):
                    raise TypeError("Step.run(ctx) must return StepResult")
                results[sid] = self._enrich(step_id=sid, step=step, result=step_result)

            except Exception as e:
                error = self._exception_to_error(e)
                if isinstance(e, TypeError) and "must return StepResult" in str(e):
                    error = IntakeErrorPayload(
                        type=ENGINE_CONFIGURATION_ERROR,
                        message="Step retornou tipo inválido",
                        details={"step_id": sid, "expected": "StepResult"},
                        hint="Ajuste o Step para retornar StepResult",
                    )

                self.ctx.log(
                    step_id=sid,
                    level="error",
                    message="step raised",
                    error_type=error.type,
                    error_message=error.message,
                )
                results[sid] = self._mk_result(
                    step=step,
                    status=StepStatus.FAILED,
                    summary=error.message,
                    payload={"error": error.to_dict()},
                )

            if results[sid].status == StepStatus.FAILED and self._fail_fast():
                break

        return EngineResult(steps=results)
