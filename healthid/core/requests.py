"""
Step request shapes.

One model per registration step. Each declares the keys it reads, which of them
are required and the format they must follow; nothing else is inferred. Numbers
are accepted where strings are expected (aadhaar, otp and mobile values often
arrive as JSON numbers) and unknown keys are ignored here; they still travel in
the request body built by the engine.
"""
import re
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints


def _matches(pattern: str, message: str):
    rx = re.compile(pattern)

    def check(v: str) -> str:
        if not rx.fullmatch(v):
            raise ValueError(message)
        return v

    return check


NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Aadhaar = Annotated[NonBlank, AfterValidator(_matches(r"\d{12}", "Aadhaar must be exactly 12 digits"))]
DayOfBirth = Annotated[
    NonBlank, AfterValidator(_matches(r"[1-9]|[12][0-9]|3[01]", "Day of birth must be between 1 and 31"))
]
MonthOfBirth = Annotated[
    NonBlank, AfterValidator(_matches(r"[1-9]|1[0-2]", "Month of birth must be between 1 and 12"))
]
YearOfBirth = Annotated[NonBlank, AfterValidator(_matches(r"\d{4}", "Year of birth must be exactly 4 digits"))]
Email = Annotated[NonBlank, AfterValidator(_matches(r"[^@\s]+@[^@\s]+\.[^@\s]+", "Invalid email format"))]


class StepRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


# --- shared by both flows ---

class GenerateAadhaarOtpRequest(StepRequest):
    aadhaar: Aadhaar


class VerifyMobileOtpRequest(StepRequest):
    otp: NonBlank
    txnId: NonBlank


class IdSuggestionRequest(StepRequest):
    txnId: NonBlank


# --- ABHA ---

class VerifyAadhaarOtpDto(StepRequest):
    otp: NonBlank
    txnId: NonBlank
    mobile: NonBlank


class UpdateMobile(StepRequest):
    updateValue: NonBlank
    txnId: NonBlank


class CreateAbhaAddressRequestDto(StepRequest):
    abhaAddress: NonBlank
    txnId: NonBlank


# --- HPR ---

class VerifyAadhaarOtpRequest(StepRequest):
    domainName: NonBlank = "@hpr.abdm"
    idType: NonBlank = "hpr_id"
    otp: NonBlank
    restrictions: Optional[str] = None
    txnId: NonBlank


class CheckAccountRequest(StepRequest):
    txnId: NonBlank
    preverifiedCheck: bool


class DemographicAuthViaMobileRequest(StepRequest):
    txnId: NonBlank
    mobileNumber: NonBlank


class GenerateMobileOtpRequest(StepRequest):
    mobile: NonBlank
    txnId: NonBlank


class CreateHprIdWithPreVerifiedRequest(StepRequest):
    address: NonBlank
    dayOfBirth: DayOfBirth
    districtCode: NonBlank
    email: Email
    firstName: NonBlank
    hpCategoryCode: NonBlank
    hpSubCategoryCode: NonBlank
    hprId: NonBlank
    lastName: NonBlank
    middleName: Optional[str] = None
    monthOfBirth: MonthOfBirth
    password: NonBlank
    pincode: NonBlank
    profilePhoto: Optional[str] = None
    stateCode: NonBlank
    txnId: NonBlank
    yearOfBirth: YearOfBirth
