from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class FlowResponse(BaseModel):
    message: str
    data: Optional[Dict[str, Any]] = None
    nextStep: Optional[str] = None
    nextStepHint: Optional[str] = None
    nextStepPayloadShape: Optional[str] = None
    # present only when the step failed
    error: Optional[str] = None


class StepInfo(BaseModel):
    name: str
    alias: str
    ordinal: int
    payloadShape: str


class StepCatalogue(BaseModel):
    flow: str
    steps: List[StepInfo]
