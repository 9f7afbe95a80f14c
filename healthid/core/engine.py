"""
Generic registration state machine.

A flow is a table {step -> StepDefinition}. Running a step always goes through the same
pipeline:

    normalize -> decode/validate -> build body -> encrypt -> invoke -> transition

and always ends in a FlowResult. The only thing allowed to escape run_step is a
collaborator fault (e.g. the encryptor), which the dispatcher turns into an
"Internal error" result.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Type

from healthid.core.encryption import Encryptor, encrypt_sensitive_fields
from healthid.core.errors import MalformedPayload, ValidationFailed
from healthid.core.normalize import normalize_payload
from healthid.core.requests import StepRequest
from healthid.core.results import FlowResult, StepOutcome, Transition
from healthid.core.steps import Step
from healthid.core.validator import decode_step_request
from healthid.core.invoker import RemoteStepInvoker
from healthid.observability import metrics
from healthid.observability.logging import log

# (request payload map, successful outcome) -> where to go next
TransitionFn = Callable[[Mapping[str, Any], StepOutcome], Transition]


def goto(step: Step, hint: str) -> TransitionFn:
    def _t(payload: Mapping[str, Any], outcome: StepOutcome) -> Transition:
        return Transition.to(step, hint)
    return _t


def finish(message: Optional[str] = None) -> TransitionFn:
    def _t(payload: Mapping[str, Any], outcome: StepOutcome) -> Transition:
        return Transition.terminal(message)
    return _t


@dataclass(frozen=True)
class StepDefinition:
    endpoint: str
    method: str
    request: Type[StepRequest]
    success_message: str
    failure_prefix: str
    transition: TransitionFn


@dataclass
class FlowDefinition:
    name: str
    step_type: Type[Step]
    steps: Dict[Step, StepDefinition] = field(default_factory=dict)

    def definition_for(self, step: Step) -> Optional[StepDefinition]:
        return self.steps.get(step)


def build_request_body(payload: Mapping[str, Any], typed: StepRequest) -> Dict[str, Any]:
    """Caller's extra keys as sent; every declared field as validated (stripped, defaults filled)."""
    body = dict(payload)
    body.update(typed.model_dump(exclude_none=True))
    return body


class FlowEngine:
    def __init__(self, flow: FlowDefinition, invoker: RemoteStepInvoker, encryptor: Encryptor):
        self.flow = flow
        self.invoker = invoker
        self.encryptor = encryptor

    def run_step(self, step: Step, raw_payload: Any) -> FlowResult:
        definition = self.flow.steps[step]
        start = time.time()
        result: Optional[FlowResult] = None
        log(event="flow_step_start", flow=self.flow.name, step=step.step_name)
        try:
            result = self._run(step, definition, raw_payload)
            return result
        finally:
            metrics.record_step(
                self.flow.name,
                step.step_name,
                bool(result is not None and result.ok),
                int((time.time() - start) * 1000),
            )

    def _run(self, step: Step, definition: StepDefinition, raw_payload: Any) -> FlowResult:
        try:
            payload = normalize_payload(raw_payload)
            typed = decode_step_request(definition.request, payload)
        except MalformedPayload as e:
            log(event="flow_step_validation_failed", flow=self.flow.name, step=step.step_name, error=e.message)
            return FlowResult.failure(f"Invalid payload: {e.message}")
        except ValidationFailed as e:
            log(
                event="flow_step_validation_failed",
                flow=self.flow.name,
                step=step.step_name,
                shape=definition.request.__name__,
                fields=[fe["field"] for fe in e.field_errors],
            )
            return FlowResult.failure(f"Validation failed: {e.message}")

        body = encrypt_sensitive_fields(build_request_body(payload, typed), step, self.encryptor)
        outcome = self.invoker.invoke(definition.endpoint, definition.method, body)

        if not outcome.success:
            err = outcome.as_error()
            log(
                event="flow_step_remote_failed",
                flow=self.flow.name,
                step=step.step_name,
                statusCode=err.status_code,
                error=err.message[:500],
            )
            return FlowResult.failure(f"{definition.failure_prefix}: {err.message}")

        transition = definition.transition(payload, outcome)
        log(
            event="flow_step_completed",
            flow=self.flow.name,
            step=step.step_name,
            nextStep=transition.next_step.step_name if transition.next_step else None,
        )
        return FlowResult.success(definition.success_message, outcome.to_dict(), transition)
