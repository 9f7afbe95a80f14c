import pytest
from healthid.core.errors import UnknownStep
from healthid.core.flows import FLOWS
from healthid.core.steps import AbhaStep, HprStep


@pytest.mark.parametrize("step", list(AbhaStep) + list(HprStep))
def test_name_and_numeric_alias_resolve_to_same_step(step):
    step_type = type(step)
    assert step_type.resolve(step.step_name) is step
    assert step_type.resolve(step.step_name.upper()) is step
    assert step_type.resolve(step.alias) is step
    assert step_type.resolve(int(step.alias)) is step
    assert step_type.resolve(step) is step


@pytest.mark.parametrize("alias", ["99", "0", "", "register", "final-register", None])
def test_unknown_alias_raises(alias):
    with pytest.raises(UnknownStep) as exc:
        AbhaStep.resolve(alias)
    assert exc.value.message == f"Invalid step: {alias}"


def test_aliases_unique_and_ordered():
    for step_type in (AbhaStep, HprStep):
        aliases = [m.alias for m in step_type]
        assert len(set(aliases)) == len(aliases)
        assert [m.ordinal for m in step_type] == list(range(1, len(aliases) + 1))


def test_catalogue_shape():
    cat = HprStep.catalogue()
    assert cat[0] == {
        "name": "generate_aadhaar_otp",
        "alias": "1",
        "ordinal": 1,
        "payloadShape": "GenerateAadhaarOtpRequest",
    }
    assert cat[-1]["name"] == "create_hpr"


def test_every_step_is_wired_to_its_declared_shape():
    for flow in FLOWS.values():
        assert set(flow.steps) == set(flow.step_type)
        for step, definition in flow.steps.items():
            assert definition.request.__name__ == step.payload_shape
