"""
Pipeline stage registry.

Stages run in the fixed order below. ``checkpoint`` is the run's
``progress_percent`` once the stage completes.
"""

from dataclasses import dataclass

from miraat.models.enums import StageId


@dataclass(frozen=True)
class StageDefinition:
    stage: StageId
    name: str
    checkpoint: int


STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(StageId.IMPACT_ASSESSMENT, "Impact Assessment", 10),
    StageDefinition(StageId.HOSPITAL_ANALYSIS, "Hospital Analysis", 20),
    StageDefinition(StageId.CRITICAL_INFRASTRUCTURE, "Critical Infrastructure", 30),
    StageDefinition(StageId.CASUALTY_ESTIMATION, "Casualty Estimation", 45),
    StageDefinition(StageId.ECONOMIC_ANALYSIS, "Economic Analysis", 60),
    StageDefinition(StageId.RISK_IDENTIFICATION, "Risk Identification", 70),
    StageDefinition(StageId.SECTOR_BREAKDOWN, "Sector Breakdown", 80),
    StageDefinition(StageId.MITIGATION_PLANNING, "Mitigation Planning", 90),
    StageDefinition(StageId.REPORT_GENERATION, "Report Generation", 100),
)

STAGES_BY_ID = {definition.stage: definition for definition in STAGES}
