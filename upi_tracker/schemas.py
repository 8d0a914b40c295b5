import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

QRSize = Literal["small", "medium", "large"]
BorderStyle = Literal["none", "simple", "rounded", "fancy"]

UPI_ID_PATTERN = r"^[\w.\-]+@[\w.\-]+$"

# numeric(10,2): até 8 dígitos inteiros e 2 decimais, sem expoente nem sinal
AMOUNT_PATTERN = re.compile(r"^\d{1,8}(\.\d{1,2})?$")


def _parse_amount(value: Union[str, int, float], allow_zero: bool) -> str:
    text = str(value).strip()
    if not AMOUNT_PATTERN.match(text):
        raise ValueError("must be a plain decimal with at most 8 integer digits and 2 decimal places")
    if Decimal(text) == 0 and not allow_zero:
        raise ValueError("must be greater than zero")
    return text


class APIModel(BaseModel):
    """JSON em camelCase; na entrada também aceita snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(APIModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    upi_id: Optional[str] = Field(None, pattern=UPI_ID_PATTERN)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None


class UserUpdate(APIModel):
    upi_id: Optional[str] = Field(None, pattern=UPI_ID_PATTERN)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None


class UserPublic(APIModel):
    id: int
    username: str
    upi_id: Optional[str]
    email: Optional[str]
    full_name: Optional[str]


class LoginRequest(APIModel):
    username: str
    password: str


class LoginResponse(APIModel):
    user: UserPublic
    token: str


class MessageResponse(APIModel):
    message: str


class QRCreate(APIModel):
    user_id: int
    upi_id: str = Field(..., pattern=UPI_ID_PATTERN, description="Handle UPI do recebedor")
    name: str = Field(..., min_length=1)
    amount: Optional[str] = Field(None, description="Valor fixo; vazio deixa o pagador escolher")
    description: Optional[str] = None
    size: QRSize = "medium"
    border_style: BorderStyle = "simple"

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return _parse_amount(value, allow_zero=True)


class QRPublic(APIModel):
    id: int
    user_id: int
    upi_id: str
    name: str
    amount: Optional[str]
    description: Optional[str]
    size: str
    border_style: str
    created_at: datetime
    qr_data: str


class TransactionCreate(APIModel):
    qr_code_id: int
    amount: str
    payer_name: Optional[str] = None
    payer_upi_id: Optional[str] = None
    status: str = Field("completed", min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value: Any) -> str:
        if value is None:
            raise ValueError("amount is required")
        return _parse_amount(value, allow_zero=False)


class TransactionPublic(APIModel):
    id: int
    qr_code_id: int
    amount: str
    payer_name: Optional[str]
    payer_upi_id: Optional[str]
    timestamp: datetime
    status: str
    metadata: dict[str, Any]


class StatsPublic(APIModel):
    id: int
    user_id: int
    total_payments: str
    active_qr_codes: int
    total_transactions: int
    unique_payers: int
    last_updated: datetime
