from typing import Any, Optional

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from upi_tracker.database import init_db
from upi_tracker.exceptions import UsernameTakenError
from upi_tracker.models import QRCode, Stats, Transaction, User, utcnow
from upi_tracker.repository.base import Repository
from upi_tracker.stats import StatsValues
from upi_tracker.utils.logger import logger


class SQLRepository(Repository):
    """Backend durável sobre SQLModel; uma sessão por operação."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def init_db(self) -> None:
        init_db(self.engine)

    # Usuários

    def get_user(self, user_id: int) -> Optional[User]:
        with Session(self.engine) as session:
            return session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with Session(self.engine) as session:
            return session.exec(select(User).where(User.username == username)).first()

    def _add_user(self, user: User) -> User:
        with Session(self.engine) as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.warning(f"Nome de usuário já cadastrado: {user.username}")
                raise UsernameTakenError("Username already exists")
            session.refresh(user)
            return user

    def _apply_user_changes(self, user_id: int, changes: dict[str, Any]) -> Optional[User]:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            if user is None:
                return None

            for field, value in changes.items():
                setattr(user, field, value)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise UsernameTakenError("Username already exists")
            session.refresh(user)
            return user

    # QR Codes

    def get_qr_code(self, qr_code_id: int) -> Optional[QRCode]:
        with Session(self.engine) as session:
            return session.get(QRCode, qr_code_id)

    def get_qr_codes_by_user_id(self, user_id: int) -> list[QRCode]:
        statement = (
            select(QRCode)
            .where(QRCode.user_id == user_id)
            .order_by(QRCode.created_at.desc(), QRCode.id.desc())
        )
        with Session(self.engine) as session:
            return list(session.exec(statement).all())

    def _add_qr_code(self, qr_code: QRCode) -> QRCode:
        with Session(self.engine) as session:
            session.add(qr_code)
            session.commit()
            session.refresh(qr_code)
            return qr_code

    def _remove_qr_code(self, qr_code_id: int) -> Optional[int]:
        with Session(self.engine) as session:
            record = session.get(QRCode, qr_code_id)
            if record is None:
                return None

            owner_id = record.user_id
            session.execute(delete(Transaction).where(Transaction.qr_code_id == qr_code_id))
            session.delete(record)
            session.commit()
            return owner_id

    # Transações

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with Session(self.engine) as session:
            return session.get(Transaction, transaction_id)

    def get_transactions_by_qr_code_id(self, qr_code_id: int) -> list[Transaction]:
        statement = (
            select(Transaction)
            .where(Transaction.qr_code_id == qr_code_id)
            .order_by(Transaction.timestamp.desc(), Transaction.id.desc())
        )
        with Session(self.engine) as session:
            return list(session.exec(statement).all())

    def _add_transaction(self, transaction: Transaction) -> Transaction:
        with Session(self.engine) as session:
            session.add(transaction)
            session.commit()
            session.refresh(transaction)
            return transaction

    # Estatísticas

    def _find_stats(self, user_id: int) -> Optional[Stats]:
        with Session(self.engine) as session:
            return session.exec(select(Stats).where(Stats.user_id == user_id)).first()

    def create_or_update_stats(self, values: StatsValues) -> Stats:
        with Session(self.engine) as session:
            record = session.exec(select(Stats).where(Stats.user_id == values.user_id)).first()
            if record is None:
                record = Stats(user_id=values.user_id)

            record.total_payments = values.total_payments
            record.active_qr_codes = values.active_qr_codes
            record.total_transactions = values.total_transactions
            record.unique_payers = values.unique_payers
            record.last_updated = utcnow()

            session.add(record)
            session.commit()
            session.refresh(record)
            return record
