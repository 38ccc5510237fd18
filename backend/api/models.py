"""
Pydantic request/response models for the API.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


# ============== Health ==============

class HealthResponse(BaseModel):
    ok: bool = True
    time: str


# ============== Reconciliation ==============

class ReconcileRequest(BaseModel):
    """One DB record and its catalog attribute bag."""
    db_record: Dict[str, Any] = Field(default_factory=dict)
    web_bag: Optional[Dict[str, Any]] = None
    identifier: Optional[str] = None
    weight_tolerance_percent: Optional[float] = Field(default=None, ge=0)


class VerdictModel(BaseModel):
    field: str
    outcome: str
    color: str
    db_value: Any = None
    web_value: Any = None
    reason: str = ""


class ReconcileResponse(BaseModel):
    identifier: Optional[str] = None
    verdicts: List[VerdictModel]
    counts: Dict[str, int]
