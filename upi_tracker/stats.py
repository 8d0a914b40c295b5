"""
Agregação das estatísticas por usuário.

A linha ``Stats`` é apenas um cache: ``compute_stats`` recalcula os quatro
valores a partir dos QR Codes e transações do usuário, e ``recompute_stats``
grava o resultado pelo repositório. Toda atualização (inclusive a
"incremental" após uma transação) passa por aqui.
"""

from dataclasses import dataclass
from decimal import Context, Decimal, localcontext
from typing import TYPE_CHECKING, Iterable

from upi_tracker.models import QRCode, Stats, Transaction
from upi_tracker.utils.logger import logger

if TYPE_CHECKING:
    from upi_tracker.repository.base import Repository


@dataclass(frozen=True)
class StatsValues:
    user_id: int
    total_payments: str = "0"
    active_qr_codes: int = 0
    total_transactions: int = 0
    unique_payers: int = 0


def _exact_context(amounts: list[Decimal]) -> Context:
    """Precisão suficiente para somar ``amounts`` sem arredondar."""
    integer_digits = max((max(a.adjusted() + 1, 1) for a in amounts), default=1)
    fraction_digits = max((max(-a.as_tuple().exponent, 0) for a in amounts), default=0)
    carry_digits = len(str(len(amounts)))
    return Context(prec=max(28, integer_digits + fraction_digits + carry_digits + 1))


def format_amount(value: Decimal) -> str:
    """Texto canônico de um total: sem expoente e sem zeros à direita."""
    with localcontext(_exact_context([value])):
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return format(value.normalize(), "f")


def compute_stats(
    user_id: int, qr_codes: Iterable[QRCode], transactions: Iterable[Transaction]
) -> StatsValues:
    qr_codes = list(qr_codes)
    transactions = list(transactions)

    amounts = [Decimal(tx.amount) for tx in transactions]
    with localcontext(_exact_context(amounts)):
        total = sum(amounts, Decimal(0))
    payers = {tx.payer_upi_id for tx in transactions if tx.payer_upi_id}

    return StatsValues(
        user_id=user_id,
        total_payments=format_amount(total),
        active_qr_codes=len(qr_codes),
        total_transactions=len(transactions),
        unique_payers=len(payers),
    )


def recompute_stats(repository: "Repository", user_id: int) -> Stats:
    """Recalcula do zero e faz o upsert da linha de estatísticas."""
    values = compute_stats(
        user_id,
        repository.get_qr_codes_by_user_id(user_id),
        repository.get_transactions_by_user_id(user_id),
    )
    logger.debug(f"Stats recalculadas para o usuário {user_id}: {values}")
    return repository.create_or_update_stats(values)
