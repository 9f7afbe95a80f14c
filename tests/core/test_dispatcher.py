import pytest
from unittest.mock import MagicMock, patch

from healthid.core.dispatcher import INVALID_STEP_MESSAGE, FlowDispatcher, build_dispatcher
from healthid.core.encryption import UnconfiguredEncryptor
from healthid.core.flows import ABHA_FLOW, HPR_FLOW
from healthid.core.results import StepOutcome
from healthid.core.steps import AbhaStep, HprStep


class TagEncryptor:
    def encrypt(self, plaintext):
        return f"enc({plaintext})"


@pytest.fixture
def invoker():
    inv = MagicMock()
    inv.invoke.return_value = StepOutcome.ok({"txnId": "t1"})
    return inv


@pytest.fixture
def abha(invoker):
    return FlowDispatcher(ABHA_FLOW, invoker, TagEncryptor())


@pytest.mark.parametrize("payload", [None, "", "{not json", "[1, 2]", 42, {"aadhaar": ["1"]}])
def test_bad_payloads_come_back_as_results(abha, invoker, payload):
    res = abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, payload)

    assert res.error is not None
    assert res.message == res.error
    assert res.data is None
    assert res.nextStep is None
    invoker.invoke.assert_not_called()


def test_unsupported_payload_type(abha):
    res = abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, 42)
    assert res.message == "Invalid payload: Unsupported payload type: int"


@pytest.mark.parametrize("alias", ["99", 99, "finish", "", "register with aadhaar"])
def test_unknown_alias(abha, invoker, alias):
    res = abha.dispatch(alias, {})

    assert res.message == f"Invalid step: {alias}"
    assert res.error == res.message
    invoker.invoke.assert_not_called()


def test_step_from_other_flow_is_rejected(abha, invoker):
    res = abha.dispatch(HprStep.CREATE_HPR, {})

    assert res.message == INVALID_STEP_MESSAGE
    invoker.invoke.assert_not_called()


@pytest.mark.parametrize("alias", ["1", 1, "REGISTER_WITH_AADHAAR", "register_with_aadhaar"])
def test_aliases_resolve_to_the_same_step(abha, alias):
    res = abha.dispatch(alias, {"aadhaar": "123456789012"})
    assert res.nextStep is AbhaStep.VERIFY_AADHAAR_OTP


def test_hpr_numeric_aliases(invoker):
    hpr = FlowDispatcher(HPR_FLOW, invoker, TagEncryptor())
    res = hpr.dispatch("7", {"txnId": "h1"})
    assert res.nextStep is HprStep.CREATE_HPR


def test_missing_key_is_internal_error(invoker):
    d = FlowDispatcher(ABHA_FLOW, invoker, UnconfiguredEncryptor())

    res = d.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, {"aadhaar": "123456789012"})

    assert res.message == "Internal error: ABHA certificate not configured"
    assert res.nextStep is None
    invoker.invoke.assert_not_called()


def test_unencrypted_steps_work_without_key(invoker):
    d = FlowDispatcher(ABHA_FLOW, invoker, UnconfiguredEncryptor())

    res = d.dispatch(AbhaStep.GET_ABHA_ADDRESS_SUGGESTIONS, {"txnId": "t1"})

    assert res.error is None
    assert res.nextStep is AbhaStep.FINAL_REGISTER


def test_invoker_crash_is_internal_error(abha, invoker):
    invoker.invoke.side_effect = RuntimeError("boom")

    res = abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, {"aadhaar": "123456789012"})

    assert res.message == "Internal error: boom"


def test_success_without_body_still_transitions(abha, invoker):
    invoker.invoke.return_value = StepOutcome(success=True, response=None)

    res = abha.dispatch(AbhaStep.VERIFY_AADHAAR_OTP, {"otp": "1", "txnId": "t1", "mobile": "9"})

    assert res.nextStep is AbhaStep.UPDATE_MOBILE
    assert res.data == {"success": True, "response": None}


def test_steps_are_independent(abha, invoker):
    first = abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, {"aadhaar": "123456789012"})
    again = abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, {"aadhaar": "123456789012"})

    assert first == again
    assert invoker.invoke.call_count == 2


def test_metrics_recorded_per_step(abha):
    with patch("healthid.core.engine.metrics.record_step") as rec:
        abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, {"aadhaar": "123456789012"})
        abha.dispatch(AbhaStep.REGISTER_WITH_AADHAAR, {"aadhaar": "1"})

    calls = [c.args[:3] for c in rec.call_args_list]
    assert calls == [
        ("abha", "register_with_aadhaar", True),
        ("abha", "register_with_aadhaar", False),
    ]


def test_build_dispatcher_uses_given_collaborators(invoker):
    enc = TagEncryptor()
    d = build_dispatcher(HPR_FLOW, invoker=invoker, encryptor=enc)

    assert d.flow is HPR_FLOW
    assert d.engine.invoker is invoker
    assert d.engine.encryptor is enc

    d.close()
    invoker.close.assert_called_once()
