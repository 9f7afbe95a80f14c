"""
Registration step identifiers.

Each member carries the numeric alias external callers may use, its position in
the typical flow, and the name of the payload shape the step expects.
"""
from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar, Union

from healthid.core.errors import UnknownStep

S = TypeVar("S", bound="Step")


class Step(Enum):
    def __init__(self, alias: str, payload_shape: str):
        self.alias = alias
        self.payload_shape = payload_shape

    @property
    def ordinal(self) -> int:
        return int(self.alias)

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def step_name(self) -> str:
        return self.name.lower()

    @classmethod
    def resolve(cls: Type[S], alias: Union[str, int, "Step"]) -> S:
        """Accepts a member, its numeric alias ("1" or 1) or its name (any case)."""
        if isinstance(alias, cls):
            return alias
        if isinstance(alias, bool) or alias is None:
            raise UnknownStep(alias)
        key = str(alias).strip()
        for member in cls:
            if member.alias == key or member.name == key.upper():
                return member
        raise UnknownStep(alias)

    @classmethod
    def catalogue(cls) -> list:
        return [
            {
                "name": m.step_name,
                "alias": m.alias,
                "ordinal": m.ordinal,
                "payloadShape": m.payload_shape,
            }
            for m in cls
        ]


class AbhaStep(Step):
    REGISTER_WITH_AADHAAR = ("1", "GenerateAadhaarOtpRequest")
    VERIFY_AADHAAR_OTP = ("2", "VerifyAadhaarOtpDto")
    UPDATE_MOBILE = ("3", "UpdateMobile")
    VERIFY_UPDATE_MOBILE_OTP = ("4", "VerifyMobileOtpRequest")
    GET_ABHA_ADDRESS_SUGGESTIONS = ("5", "IdSuggestionRequest")
    FINAL_REGISTER = ("6", "CreateAbhaAddressRequestDto")


class HprStep(Step):
    GENERATE_AADHAAR_OTP = ("1", "GenerateAadhaarOtpRequest")
    VERIFY_AADHAAR_OTP = ("2", "VerifyAadhaarOtpRequest")
    CHECK_ACCOUNT_EXISTS = ("3", "CheckAccountRequest")
    DEMOGRAPHIC_AUTH_VIA_MOBILE = ("4", "DemographicAuthViaMobileRequest")
    GENERATE_MOBILE_OTP = ("5", "GenerateMobileOtpRequest")
    VERIFY_MOBILE_OTP = ("6", "VerifyMobileOtpRequest")
    GET_HPR_ID_SUGGESTIONS = ("7", "IdSuggestionRequest")
    CREATE_HPR = ("8", "CreateHprIdWithPreVerifiedRequest")
