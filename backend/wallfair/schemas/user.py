import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from wallfair.schemas.chat import CamelModel

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{6,14}$")


class LoginRequest(CamelModel):
    phone: str
    ref: Optional[int] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        value = value.replace(" ", "")
        if not PHONE_PATTERN.match(value):
            raise ValueError("Invalid phone number")
        return value


class VerifyLoginRequest(LoginRequest):
    sms_token: str = Field(..., min_length=4, max_length=10, pattern=r"^\d+$")


class BindWalletRequest(CamelModel):
    wallet_address: Optional[str] = None


class AdditionalInformationRequest(CamelModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)


class AcceptConditionsRequest(CamelModel):
    conditions: List[bool] = Field(..., min_length=1)

    @field_validator("conditions")
    @classmethod
    def all_accepted(cls, value: List[bool]) -> List[bool]:
        if not all(value):
            raise ValueError("All conditions need to be accepted")
        return value


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    profile_picture: Optional[str] = Field(default=None, max_length=512)


class LeaderboardEntry(CamelModel):
    username: str
    amount_won: float


class LeaderboardPage(BaseModel):
    total: int
    users: List[LeaderboardEntry]
    limit: int
    skip: int


class RefListItem(CamelModel):
    id: int
    username: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    date: datetime
