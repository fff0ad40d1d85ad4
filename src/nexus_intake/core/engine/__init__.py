from .engine import Engine, EngineResult
from .planner import CycleDetectedError, UnknownDependencyError, plan_execution

__all__ = ["CycleDetectedError", "Engine", "EngineResult", "UnknownDependencyError", "plan_execution"]
