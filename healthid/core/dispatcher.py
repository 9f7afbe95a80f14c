from typing import Any, Optional, Union

from healthid.core.encryption import Encryptor, build_encryptor
from healthid.core.engine import FlowDefinition, FlowEngine
from healthid.core.errors import UnknownStep
from healthid.core.flows import ABHA_FLOW, HPR_FLOW
from healthid.core.invoker import RemoteStepInvoker
from healthid.core.results import FlowResult
from healthid.core.steps import Step
from healthid.observability.logging import log
from healthid.settings import settings

INVALID_STEP_MESSAGE = "Invalid step in registration flow"


class FlowDispatcher:
    """
    Entry point for one registration flow. dispatch() never raises: unknown steps,
    bad payloads, remote failures and internal faults all come back as a FlowResult.
    """

    def __init__(self, flow: FlowDefinition, invoker: RemoteStepInvoker, encryptor: Encryptor):
        self.flow = flow
        self.engine = FlowEngine(flow, invoker, encryptor)

    def dispatch(self, step: Union[Step, str, int], payload: Any = None) -> FlowResult:
        if not isinstance(step, Step):
            return self.dispatch_alias(step, payload)

        if self.flow.definition_for(step) is None:
            log(event="flow_dispatch_invalid_step", flow=self.flow.name, step=str(step))
            return FlowResult.failure(INVALID_STEP_MESSAGE)

        try:
            return self.engine.run_step(step, payload)
        except Exception as e:
            log(
                event="flow_dispatch_internal_error",
                flow=self.flow.name,
                step=step.step_name,
                errorType=type(e).__name__,
                error=str(e)[:500],
            )
            return FlowResult.failure(f"Internal error: {e}")

    def dispatch_alias(self, alias: Union[str, int], payload: Any = None) -> FlowResult:
        try:
            step = self.flow.step_type.resolve(alias)
        except UnknownStep:
            log(event="flow_dispatch_invalid_step", flow=self.flow.name, step=str(alias))
            return FlowResult.failure(f"Invalid step: {alias}")
        return self.dispatch(step, payload)

    def close(self) -> None:
        self.engine.invoker.close()


def build_dispatcher(
    flow: FlowDefinition,
    invoker: Optional[RemoteStepInvoker] = None,
    encryptor: Optional[Encryptor] = None,
) -> FlowDispatcher:
    return FlowDispatcher(
        flow,
        invoker or RemoteStepInvoker.from_settings(settings),
        encryptor or build_encryptor(settings),
    )


def abha_dispatcher(**kwargs) -> FlowDispatcher:
    return build_dispatcher(ABHA_FLOW, **kwargs)


def hpr_dispatcher(**kwargs) -> FlowDispatcher:
    return build_dispatcher(HPR_FLOW, **kwargs)
