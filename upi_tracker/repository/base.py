"""
Contrato de persistência comum aos dois backends.

Os backends implementam apenas as primitivas de armazenamento (métodos
abstratos). Os efeitos colaterais do domínio ficam aqui, uma única vez:
estatísticas zeradas na criação do usuário, recálculo após criar/remover QR
Codes e após registrar transações, remoção em cascata e cálculo preguiçoso em
``get_stats``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from upi_tracker.models import QRCode, Stats, Transaction, User
from upi_tracker.stats import StatsValues, recompute_stats
from upi_tracker.utils.logger import logger


class Repository(ABC):
    # Usuários

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def _add_user(self, user: User) -> User:
        """Persiste e atribui o id; ``UsernameTakenError`` se o nome já existe."""

    @abstractmethod
    def _apply_user_changes(self, user_id: int, changes: dict[str, Any]) -> Optional[User]:
        ...

    def create_user(self, user: User) -> User:
        created = self._add_user(user)
        self.create_or_update_stats(StatsValues(user_id=created.id))
        logger.info(f"Usuário criado: id={created.id} username={created.username}")
        return created

    def update_user(self, user_id: int, **changes: Any) -> Optional[User]:
        """Atualização parcial: campos ``None`` ficam como estão."""
        changes = {key: value for key, value in changes.items() if value is not None}
        return self._apply_user_changes(user_id, changes)

    # QR Codes

    @abstractmethod
    def get_qr_code(self, qr_code_id: int) -> Optional[QRCode]:
        ...

    @abstractmethod
    def get_qr_codes_by_user_id(self, user_id: int) -> list[QRCode]:
        """Mais recentes primeiro."""

    @abstractmethod
    def _add_qr_code(self, qr_code: QRCode) -> QRCode:
        ...

    @abstractmethod
    def _remove_qr_code(self, qr_code_id: int) -> Optional[int]:
        """Remove as transações do QR Code e depois o próprio QR Code.

        Retorna o id do dono, ou ``None`` se o QR Code não existia.
        """

    def create_qr_code(self, qr_code: QRCode) -> QRCode:
        created = self._add_qr_code(qr_code)
        recompute_stats(self, created.user_id)
        return created

    def delete_qr_code(self, qr_code_id: int) -> bool:
        owner_id = self._remove_qr_code(qr_code_id)
        if owner_id is None:
            return False

        recompute_stats(self, owner_id)
        return True

    # Transações

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        ...

    @abstractmethod
    def get_transactions_by_qr_code_id(self, qr_code_id: int) -> list[Transaction]:
        """Mais recentes primeiro."""

    @abstractmethod
    def _add_transaction(self, transaction: Transaction) -> Transaction:
        ...

    def create_transaction(self, transaction: Transaction) -> Transaction:
        # A transação é gravada antes; se o recálculo falhar ela permanece e
        # as estatísticas podem ser refeitas depois com recompute_stats.
        created = self._add_transaction(transaction)

        qr_code = self.get_qr_code(created.qr_code_id)
        if qr_code is not None:
            recompute_stats(self, qr_code.user_id)
        return created

    def get_transactions_by_user_id(self, user_id: int) -> list[Transaction]:
        merged: list[Transaction] = []
        for qr_code in self.get_qr_codes_by_user_id(user_id):
            merged.extend(self.get_transactions_by_qr_code_id(qr_code.id))
        return sorted(merged, key=lambda tx: (tx.timestamp, tx.id), reverse=True)

    # Estatísticas

    @abstractmethod
    def _find_stats(self, user_id: int) -> Optional[Stats]:
        ...

    @abstractmethod
    def create_or_update_stats(self, values: StatsValues) -> Stats:
        """Upsert pela chave ``user_id``, carimbando ``last_updated``."""

    def get_stats(self, user_id: int) -> Optional[Stats]:
        stats = self._find_stats(user_id)
        if stats is not None:
            return stats

        # Não cria estatísticas para usuários inexistentes
        if self.get_user(user_id) is None:
            return None
        return recompute_stats(self, user_id)
