"""
Contratos de execução de um lote: contexto, Step, resultado e registro.

- **context**: `BatchContext` (artefatos, eventos, warnings)
- **types**: `StepKind`, `StepStatus`, `StepResult`
- **step**: `Step` (Protocol)
- **registry**: `StepRegistry` (unicidade de `step.id`)
"""
