from dataclasses import dataclass
from typing import Any, Dict, Optional

from healthid.core.errors import ErrorType, RemoteStepFailure
from healthid.core.steps import Step


@dataclass
class StepOutcome:
    """What a single remote call produced. `response` is meaningful only when success is True."""
    success: bool
    response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, response: Dict[str, Any], status_code: Optional[int] = None) -> "StepOutcome":
        return cls(success=True, response=response, status_code=status_code)

    @classmethod
    def failed(cls, error: str, status_code: Optional[int] = None) -> "StepOutcome":
        return cls(success=False, error=error, status_code=status_code)

    def as_error(self) -> RemoteStepFailure:
        error_type = ErrorType.from_status(self.status_code) if self.status_code else ErrorType.CONNECTION
        return RemoteStepFailure(self.error or "unknown error", error_type=error_type, status_code=self.status_code)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "response": self.response}
        return {"success": False, "error": self.error}


@dataclass(frozen=True)
class Transition:
    next_step: Optional[Step]
    hint: Optional[str] = None
    payload_shape: Optional[str] = None
    message: Optional[str] = None  # overrides the step's success message

    @classmethod
    def to(cls, step: Step, hint: str, message: Optional[str] = None) -> "Transition":
        return cls(next_step=step, hint=hint, payload_shape=step.payload_shape, message=message)

    @classmethod
    def terminal(cls, message: Optional[str] = None) -> "Transition":
        return cls(next_step=None, message=message)


@dataclass
class FlowResult:
    message: str
    data: Optional[Dict[str, Any]] = None
    nextStep: Optional[Step] = None
    nextStepHint: Optional[str] = None
    nextStepPayloadShape: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, message: str, data: Dict[str, Any], transition: Transition) -> "FlowResult":
        return cls(
            message=transition.message or message,
            data=data,
            nextStep=transition.next_step,
            nextStepHint=transition.hint,
            nextStepPayloadShape=transition.payload_shape,
        )

    @classmethod
    def failure(cls, message: str) -> "FlowResult":
        return cls(message=message, error=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "message": self.message,
            "data": self.data,
            "nextStep": self.nextStep.step_name if self.nextStep is not None else None,
            "nextStepHint": self.nextStepHint,
            "nextStepPayloadShape": self.nextStepPayloadShape,
        }
        if self.error is not None:
            out["error"] = self.error
        return out
