"""
Transition tables for the two identity-registration flows.

ABHA (patient health account):
  register_with_aadhaar -> verify_aadhaar_otp -> [update_mobile -> verify_update_mobile_otp]
  -> get_abha_address_suggestions -> final_register

HPR (healthcare professional id):
  generate_aadhaar_otp -> verify_aadhaar_otp -> check_account_exists
  -> (existing account: done) | demographic_auth_via_mobile
  -> [generate_mobile_otp -> verify_mobile_otp] -> get_hpr_id_suggestions -> create_hpr
"""
from typing import Any, Mapping

from healthid.core import requests as rq
from healthid.core.engine import FlowDefinition, StepDefinition, finish, goto
from healthid.core.normalize import dig
from healthid.core.results import StepOutcome, Transition
from healthid.core.steps import AbhaStep, HprStep
from healthid.observability.logging import log

# Remote paths (relative to API_URL)
REGISTER_WITH_AADHAAR = "patient/registration/abha/aadhaar/request-otp"
ENROLL_AADHAAR = "patient/registration/abha/aadhaar/enroll"
UPDATE_MOBILE = "patient/registration/abha/update/mobile/request-otp"
VERIFY_UPDATE_MOBILE = "patient/registration/abha/update/mobile/verify-otp"
GET_ABHA_ADDRESS_SUGGESTIONS = "patient/registration/abha/address-suggestions"
FINAL_ABHA_REGISTRATION = "patient/registration/abha/abha-address"

GENERATE_AADHAAR_OTP = "/aadhaar/generateOtp"
VERIFY_AADHAAR_OTP = "/aadhaar/verifyOtp"
CHECK_HPR_ACCOUNT = "/check/account-exist"
DEMOGRAPHIC_AUTH_MOBILE = "/demographic-auth/mobile"
GENERATE_MOBILE_OTP = "/generate/mobileOtp"
VERIFY_MOBILE_OTP = "/verify/mobileOtp"
GET_HPR_SUGGESTIONS = "/hpId/suggestion"
CREATE_HPR = "/hprId/create"


def _as_text(v: Any):
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _as_flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in ("true", "1", "yes")
    return False


def _response_value(outcome: StepOutcome, *path: str, flow: str, step: str):
    value = dig(outcome.response, *path)
    if value is None:
        log(event="flow_response_path_missing", flow=flow, step=step, path=".".join(path))
    return value


# --- ABHA conditional transitions ---

def _abha_after_aadhaar_verified(payload: Mapping[str, Any], outcome: StepOutcome) -> Transition:
    request_mobile = _as_text(dig(payload, "mobile"))
    response_mobile = _as_text(
        _response_value(outcome, "ABHAProfile", "mobile", flow="abha", step="verify_aadhaar_otp")
    )
    if request_mobile is not None and request_mobile == response_mobile:
        return Transition.to(
            AbhaStep.GET_ABHA_ADDRESS_SUGGESTIONS,
            "Mobile number is already verified. Proceed to select ABHA address.",
        )
    return Transition.to(
        AbhaStep.UPDATE_MOBILE,
        "Mobile number needs to be updated. Please proceed with mobile update.",
    )


# --- HPR conditional transitions ---

def _hpr_after_account_check(payload: Mapping[str, Any], outcome: StepOutcome) -> Transition:
    is_new = dig(outcome.response, "new")
    if is_new is None:
        is_new = _response_value(outcome, "isNew", flow="hpr", step="check_account_exists")
    if _as_flag(is_new):
        return Transition.to(
            HprStep.DEMOGRAPHIC_AUTH_VIA_MOBILE,
            "Provide txnId and mobileNumber for demographic auth",
            message="No account exists, please follow next steps.",
        )
    return Transition.terminal("Account already exists.")


def _hpr_after_demographic_auth(payload: Mapping[str, Any], outcome: StepOutcome) -> Transition:
    verified = _response_value(outcome, "verified", flow="hpr", step="demographic_auth_via_mobile")
    if _as_flag(verified):
        return Transition.to(HprStep.GET_HPR_ID_SUGGESTIONS, "Provide txnId for HPR ID suggestions")
    return Transition.to(
        HprStep.GENERATE_MOBILE_OTP,
        "Mobile is not linked to the Aadhaar record. Provide txnId and mobile to generate an OTP.",
    )


ABHA_FLOW = FlowDefinition(
    name="abha",
    step_type=AbhaStep,
    steps={
        AbhaStep.REGISTER_WITH_AADHAAR: StepDefinition(
            endpoint=REGISTER_WITH_AADHAAR,
            method="POST",
            request=rq.GenerateAadhaarOtpRequest,
            success_message="OTP sent successfully to your registered mobile number.",
            failure_prefix="Failed to send OTP",
            transition=goto(
                AbhaStep.VERIFY_AADHAAR_OTP,
                "Please enter the OTP sent to your registered mobile number and the txnId and the mobile.",
            ),
        ),
        AbhaStep.VERIFY_AADHAAR_OTP: StepDefinition(
            endpoint=ENROLL_AADHAAR,
            method="POST",
            request=rq.VerifyAadhaarOtpDto,
            success_message="Aadhaar OTP verified successfully.",
            failure_prefix="Failed to verify OTP",
            transition=_abha_after_aadhaar_verified,
        ),
        AbhaStep.UPDATE_MOBILE: StepDefinition(
            endpoint=UPDATE_MOBILE,
            method="POST",
            request=rq.UpdateMobile,
            success_message="OTP sent to your new mobile number.",
            failure_prefix="Failed to send OTP",
            transition=goto(
                AbhaStep.VERIFY_UPDATE_MOBILE_OTP,
                "Please enter the OTP sent to your new mobile number.",
            ),
        ),
        AbhaStep.VERIFY_UPDATE_MOBILE_OTP: StepDefinition(
            endpoint=VERIFY_UPDATE_MOBILE,
            method="POST",
            request=rq.VerifyMobileOtpRequest,
            success_message="Mobile number updated successfully.",
            failure_prefix="Failed to verify OTP",
            transition=goto(
                AbhaStep.GET_ABHA_ADDRESS_SUGGESTIONS,
                "Now, select an address from the suggestions.",
            ),
        ),
        AbhaStep.GET_ABHA_ADDRESS_SUGGESTIONS: StepDefinition(
            endpoint=GET_ABHA_ADDRESS_SUGGESTIONS,
            method="GET",
            request=rq.IdSuggestionRequest,
            success_message="Here are your ABHA address suggestions.",
            failure_prefix="Failed to fetch address suggestions",
            transition=goto(
                AbhaStep.FINAL_REGISTER,
                "Select an address and proceed to final registration.",
            ),
        ),
        AbhaStep.FINAL_REGISTER: StepDefinition(
            endpoint=FINAL_ABHA_REGISTRATION,
            method="POST",
            request=rq.CreateAbhaAddressRequestDto,
            success_message="ABHA registered successfully.",
            failure_prefix="Failed to complete ABHA registration",
            transition=finish(),
        ),
    },
)


HPR_FLOW = FlowDefinition(
    name="hpr",
    step_type=HprStep,
    steps={
        HprStep.GENERATE_AADHAAR_OTP: StepDefinition(
            endpoint=GENERATE_AADHAAR_OTP,
            method="POST",
            request=rq.GenerateAadhaarOtpRequest,
            success_message="OTP sent successfully to your registered mobile number.",
            failure_prefix="Failed to send OTP",
            transition=goto(
                HprStep.VERIFY_AADHAAR_OTP,
                "Please enter the OTP sent to your registered mobile number and the txnId.",
            ),
        ),
        HprStep.VERIFY_AADHAAR_OTP: StepDefinition(
            endpoint=VERIFY_AADHAAR_OTP,
            method="POST",
            request=rq.VerifyAadhaarOtpRequest,
            success_message="Aadhaar OTP verified successfully.",
            failure_prefix="Failed to verify OTP",
            transition=goto(
                HprStep.CHECK_ACCOUNT_EXISTS,
                "Please provide txnId and preverifiedCheck boolean as true to check account existence",
            ),
        ),
        HprStep.CHECK_ACCOUNT_EXISTS: StepDefinition(
            endpoint=CHECK_HPR_ACCOUNT,
            method="POST",
            request=rq.CheckAccountRequest,
            success_message="Account check completed.",
            failure_prefix="Failed to check account existence",
            transition=_hpr_after_account_check,
        ),
        HprStep.DEMOGRAPHIC_AUTH_VIA_MOBILE: StepDefinition(
            endpoint=DEMOGRAPHIC_AUTH_MOBILE,
            method="POST",
            request=rq.DemographicAuthViaMobileRequest,
            success_message="Demographic auth via mobile completed.",
            failure_prefix="Failed demographic auth via mobile",
            transition=_hpr_after_demographic_auth,
        ),
        HprStep.GENERATE_MOBILE_OTP: StepDefinition(
            endpoint=GENERATE_MOBILE_OTP,
            method="POST",
            request=rq.GenerateMobileOtpRequest,
            success_message="Mobile OTP sent successfully.",
            failure_prefix="Failed to send OTP",
            transition=goto(HprStep.VERIFY_MOBILE_OTP, "Enter txnId and OTP to verify mobile"),
        ),
        HprStep.VERIFY_MOBILE_OTP: StepDefinition(
            endpoint=VERIFY_MOBILE_OTP,
            method="POST",
            request=rq.VerifyMobileOtpRequest,
            success_message="Mobile OTP verified successfully.",
            failure_prefix="Failed to verify OTP",
            transition=goto(HprStep.GET_HPR_ID_SUGGESTIONS, "Provide txnId for HPR ID suggestions"),
        ),
        HprStep.GET_HPR_ID_SUGGESTIONS: StepDefinition(
            endpoint=GET_HPR_SUGGESTIONS,
            method="GET",
            request=rq.IdSuggestionRequest,
            success_message="Fetched HPR ID suggestions.",
            failure_prefix="Failed to fetch HPR ID suggestions",
            transition=goto(HprStep.CREATE_HPR, "Provide txnId and final details to create HPR ID"),
        ),
        HprStep.CREATE_HPR: StepDefinition(
            endpoint=CREATE_HPR,
            method="POST",
            request=rq.CreateHprIdWithPreVerifiedRequest,
            success_message="HPR ID created successfully.",
            failure_prefix="Failed to create HPR ID",
            transition=finish(),
        ),
    },
)

FLOWS = {flow.name: flow for flow in (ABHA_FLOW, HPR_FLOW)}
