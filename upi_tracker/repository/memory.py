from copy import deepcopy
from itertools import count
from typing import Any, Optional, TypeVar

from sqlmodel import SQLModel

from upi_tracker.exceptions import UsernameTakenError
from upi_tracker.models import QRCode, Stats, Transaction, User, utcnow
from upi_tracker.repository.base import Repository
from upi_tracker.stats import StatsValues

RecordT = TypeVar("RecordT", bound=SQLModel)


def _copy(record: RecordT) -> RecordT:
    # Quem chama nunca recebe (nem entrega) a instância guardada no dicionário
    return type(record)(**deepcopy(record.model_dump()))


def _copy_optional(record: Optional[RecordT]) -> Optional[RecordT]:
    return None if record is None else _copy(record)


class InMemoryRepository(Repository):
    """
    Backend volátil para desenvolvimento e testes.

    Dicionários indexados por id, contadores que nunca reutilizam ids e
    nenhuma sincronização: serve apenas a um processo com pouca concorrência.
    Os registros entram e saem como cópias, como num banco de verdade.
    """

    def __init__(self):
        self.users: dict[int, User] = {}
        self.qr_codes: dict[int, QRCode] = {}
        self.transactions: dict[int, Transaction] = {}
        self.stats: dict[int, Stats] = {}

        self._user_ids = count(1)
        self._qr_code_ids = count(1)
        self._transaction_ids = count(1)
        self._stats_ids = count(1)

    # Usuários

    def _find_user_by_username(self, username: str) -> Optional[User]:
        return next((user for user in self.users.values() if user.username == username), None)

    def get_user(self, user_id: int) -> Optional[User]:
        return _copy_optional(self.users.get(user_id))

    def get_user_by_username(self, username: str) -> Optional[User]:
        return _copy_optional(self._find_user_by_username(username))

    def _add_user(self, user: User) -> User:
        if self._find_user_by_username(user.username) is not None:
            raise UsernameTakenError("Username already exists")

        record = _copy(user)
        record.id = next(self._user_ids)
        self.users[record.id] = record
        return _copy(record)

    def _apply_user_changes(self, user_id: int, changes: dict[str, Any]) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None

        new_username = changes.get("username")
        if new_username and new_username != user.username and self._find_user_by_username(new_username):
            raise UsernameTakenError("Username already exists")

        for field, value in changes.items():
            setattr(user, field, value)
        return _copy(user)

    # QR Codes

    def get_qr_code(self, qr_code_id: int) -> Optional[QRCode]:
        return _copy_optional(self.qr_codes.get(qr_code_id))

    def get_qr_codes_by_user_id(self, user_id: int) -> list[QRCode]:
        owned = [qr for qr in self.qr_codes.values() if qr.user_id == user_id]
        return [_copy(qr) for qr in sorted(owned, key=lambda qr: (qr.created_at, qr.id), reverse=True)]

    def _add_qr_code(self, qr_code: QRCode) -> QRCode:
        record = _copy(qr_code)
        record.id = next(self._qr_code_ids)
        record.created_at = utcnow()
        self.qr_codes[record.id] = record
        return _copy(record)

    def _remove_qr_code(self, qr_code_id: int) -> Optional[int]:
        record = self.qr_codes.get(qr_code_id)
        if record is None:
            return None

        for tx_id in [tx.id for tx in self.transactions.values() if tx.qr_code_id == qr_code_id]:
            del self.transactions[tx_id]
        del self.qr_codes[qr_code_id]
        return record.user_id

    # Transações

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return _copy_optional(self.transactions.get(transaction_id))

    def get_transactions_by_qr_code_id(self, qr_code_id: int) -> list[Transaction]:
        matching = [tx for tx in self.transactions.values() if tx.qr_code_id == qr_code_id]
        return [_copy(tx) for tx in sorted(matching, key=lambda tx: (tx.timestamp, tx.id), reverse=True)]

    def _add_transaction(self, transaction: Transaction) -> Transaction:
        record = _copy(transaction)
        record.id = next(self._transaction_ids)
        record.timestamp = utcnow()
        self.transactions[record.id] = record
        return _copy(record)

    # Estatísticas

    def _find_stats(self, user_id: int) -> Optional[Stats]:
        return _copy_optional(self.stats.get(user_id))

    def create_or_update_stats(self, values: StatsValues) -> Stats:
        record = self.stats.get(values.user_id)
        if record is None:
            record = Stats(id=next(self._stats_ids), user_id=values.user_id)
            self.stats[values.user_id] = record

        record.total_payments = values.total_payments
        record.active_qr_codes = values.active_qr_codes
        record.total_transactions = values.total_transactions
        record.unique_payers = values.unique_payers
        record.last_updated = utcnow()
        return _copy(record)
