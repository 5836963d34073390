from fantasy_football_tiers.orchestration.orchestrator import (
    AcquisitionOrchestrator,
    DataResult,
    OrchestratorSettings,
    RefreshOutcome,
)
from fantasy_football_tiers.orchestration.scheduler import ScheduledTask

__all__ = ["AcquisitionOrchestrator", "DataResult", "OrchestratorSettings", "RefreshOutcome", "ScheduledTask"]
