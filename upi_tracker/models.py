from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    """Horário UTC sem tzinfo (o SQLite descarta o fuso na volta)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, sa_column_kwargs={"unique": True})
    password: str
    upi_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None

    qrcodes: list["QRCode"] = Relationship(back_populates="owner")


class QRCode(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    upi_id: str
    name: str
    amount: Optional[str] = None
    description: Optional[str] = None
    size: str = Field(default="medium")
    border_style: str = Field(default="simple")
    created_at: datetime = Field(default_factory=utcnow)
    qr_data: str

    owner: Optional[User] = Relationship(back_populates="qrcodes")


class Transaction(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    qr_code_id: int = Field(foreign_key="qrcode.id", index=True)
    amount: str
    payer_name: Optional[str] = None
    payer_upi_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
    status: str = Field(default="completed")
    # "metadata" é reservado pelo SQLModel; a coluna mantém o nome público
    meta: dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))


class Stats(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", sa_column_kwargs={"unique": True})
    total_payments: str = Field(default="0")
    active_qr_codes: int = Field(default=0)
    total_transactions: int = Field(default=0)
    unique_payers: int = Field(default=0)
    last_updated: datetime = Field(default_factory=utcnow)
