"""
Account / KYC model.

Primary and joint holders share one identity capability set (names, identity
numbers, bank details); the account wrapper carries a `type` discriminant plus
the per-account terms acceptance and document verification flags.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from schemas.base import CamelModel

UserType = Literal["individual", "business", "NRI"]
AccountType = Literal["primary", "joint"]
VerificationKind = Literal["pan", "aadhar", "gst", "passport"]

REQUIRED_VERIFICATIONS: dict[str, tuple[str, ...]] = {
    "individual": ("pan", "aadhar"),
    "business": ("gst",),
    "NRI": ("passport",),
}

REQUIRED_DOCUMENTS: dict[str, tuple[str, ...]] = {
    "individual": ("pan", "aadhar", "photo"),
    "business": ("gst", "photo"),
    "NRI": ("passport", "photo"),
}

IDENTITY_FIELDS: dict[str, str] = {
    "pan": "pan_number",
    "aadhar": "aadhar_number",
    "gst": "gst_number",
    "passport": "passport_number",
}


class Address(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = "India"
    postal_code: str = ""


class AccountDetails(BaseModel):
    account_holder_name: str = ""
    bank_account_name: str = ""
    account_number: str = ""
    ifsc_code: str = ""


class VerifiedFlags(BaseModel):
    pan: bool = False
    aadhar: bool = False
    gst: bool = False
    passport: bool = False


class IdentityHolder(BaseModel):
    surname: str = ""
    name: str = ""
    dob: str = ""
    gender: Literal["male", "female", "other"] = "male"
    email: str = ""
    phone_number: str = ""
    present_address: Address = Field(default_factory=Address)
    occupation: str = ""
    annual_income: str = ""
    user_type: UserType = "individual"
    pan_number: str = ""
    aadhar_number: str = ""
    gst_number: str = ""
    passport_number: str = ""
    account_details: AccountDetails = Field(default_factory=AccountDetails)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("user_type", mode="before")
    @classmethod
    def _normalize_user_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v.lower() == "nri":
            return "NRI"
        return v

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    @property
    def required_verifications(self) -> tuple[str, ...]:
        return REQUIRED_VERIFICATIONS[self.user_type]

    @property
    def required_documents(self) -> tuple[str, ...]:
        return REQUIRED_DOCUMENTS[self.user_type]

    def identity_numbers(self) -> dict[str, str]:
        return {field: getattr(self, field) for field in IDENTITY_FIELDS.values()}

    def identity_payload(self) -> dict[str, Optional[str]]:
        """Identity numbers for the profile request; numbers foreign to user_type are sent as null."""
        wanted = {IDENTITY_FIELDS[k] for k in self.required_verifications}
        return {
            field: (value or None) if field in wanted else None
            for field, value in self.identity_numbers().items()
        }

    def to_profile_request(self) -> dict[str, Any]:
        return {
            "surname": self.surname,
            "name": self.name,
            "dob": self.dob,
            "gender": self.gender,
            "email": self.email,
            "phone_number": self.phone_number,
            "present_address": self.present_address.model_dump(),
            "permanent_address": self.present_address.model_dump(),
            "occupation": self.occupation,
            "annual_income": self.annual_income,
            "user_type": self.user_type,
            **self.identity_payload(),
            "account_details": self.account_details.model_dump(),
        }


class UserInfo(IdentityHolder):
    permanent_address: Address = Field(default_factory=Address)
    same_address: bool = Field(True, alias="sameAddress")

    def to_profile_request(self) -> dict[str, Any]:
        payload = super().to_profile_request()
        if not self.same_address:
            payload["permanent_address"] = self.permanent_address.model_dump()
        return payload


class JointAccountInfo(IdentityHolder):
    pass


class _AccountBase(CamelModel):
    id: str
    terms_accepted: bool = False
    verified: VerifiedFlags = Field(default_factory=VerifiedFlags)


class PrimaryAccount(_AccountBase):
    type: Literal["primary"] = "primary"
    data: UserInfo = Field(default_factory=UserInfo)


class JointAccount(_AccountBase):
    type: Literal["joint"] = "joint"
    data: JointAccountInfo = Field(default_factory=JointAccountInfo)


Account = Annotated[Union[PrimaryAccount, JointAccount], Field(discriminator="type")]


def empty_primary_account(email: str = "") -> PrimaryAccount:
    return PrimaryAccount(id="primary", data=UserInfo(email=email))


def empty_joint_account(index: int) -> JointAccount:
    return JointAccount(id=f"joint-{index}")


def account_from_profile(profile: dict[str, Any], account_type: AccountType, account_id: str) -> PrimaryAccount | JointAccount:
    """Build an account from an existing platform profile; verified profiles carry their flags."""
    data_cls = UserInfo if account_type == "primary" else JointAccountInfo
    data = data_cls.model_validate(profile)
    verified = VerifiedFlags()
    if profile.get("verification_status") == "verified":
        verified = VerifiedFlags(**{k: True for k in data.required_verifications})
    cls = PrimaryAccount if account_type == "primary" else JointAccount
    return cls(id=account_id, data=data, terms_accepted=False, verified=verified)
