"""Forensic analysis result models.

These are handed to the external event-logging collaborator, so they are
pydantic models: ``model_dump(mode="json")`` gives the wire form.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AnomalyType(str, Enum):
    FAKE_QUOTE = "FAKE_QUOTE"
    GHOST_MENTION = "GHOST_MENTION"
    VIEWONCE_BYPASS = "VIEWONCE_BYPASS"
    REACTION_INJECTION = "REACTION_INJECTION"
    TIMESTAMP_MISMATCH = "TIMESTAMP_MISMATCH"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ForensicAnomaly(BaseModel):
    """One heuristic indicator that metadata is inconsistent with an honest client."""

    model_config = ConfigDict(frozen=True)

    type: AnomalyType
    severity: Severity
    description: str
    evidence: dict[str, Any] = Field(default_factory=dict)


class ForensicAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_id: str
    timestamp: datetime
    anomalies: list[ForensicAnomaly] = Field(default_factory=list)
    risk_score: int = Field(ge=0, le=100)
    is_manipulated: bool

    def has_anomaly(self, anomaly_type: AnomalyType) -> bool:
        """Check if any anomaly of the given type fired."""
        return any(a.type == anomaly_type for a in self.anomalies)
