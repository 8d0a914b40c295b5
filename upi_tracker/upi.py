from typing import Optional
from urllib.parse import quote

# Mesmo conjunto preservado pelo encodeURIComponent dos apps de pagamento
_UNRESERVED = "-_.!~*'()"

CURRENCY = "INR"


def build_upi_link(
    upi_id: str,
    name: Optional[str] = None,
    amount: Optional[str] = None,
    note: Optional[str] = None,
) -> str:
    """Monta ``upi://pay?...`` com os parâmetros sempre na ordem pa, pn, am, tn, cu.

    O handle e o valor entram como vieram; a validação é de quem chama.
    """
    link = f"upi://pay?pa={upi_id}"

    if name:
        link += f"&pn={quote(name, safe=_UNRESERVED)}"
    if amount:
        link += f"&am={amount}"
    if note:
        link += f"&tn={quote(note, safe=_UNRESERVED)}"

    link += f"&cu={CURRENCY}"
    return link
