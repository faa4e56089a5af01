# revenda/adapters/mensagem.py
"""
Mensagem de orçamento para o cliente (WhatsApp).

O modelo é texto livre com variáveis entre chaves:
{produto}, {preco}, {parcelas}, {troca}, {valor_troca}, {total}.
Chaves desconhecidas ficam como estão.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Optional
from urllib.parse import quote

from revenda.domain.formulas import round_brl

DEFAULT_TEMPLATE = (
    "Olá! Segue o orçamento para {produto}:\n"
    "Valor: {preco}\n"
    "{parcelas}"
)
SEM_PARCELAS = "(Consulte condições)"


def format_brl(value: Decimal) -> str:
    """Decimal -> 'R$ 1.234,56'."""
    s = f"{round_brl(value):,.2f}"
    return "R$ " + s.replace(",", "_").replace(".", ",").replace("_", ".")


def installment_lines(orcamento, selected: Optional[Iterable[int]] = None) -> str:
    """'1x de R$ 5.911,20' por linha, só para as parcelas selecionadas."""
    chosen = None if selected is None else set(selected)
    lines = [
        f"{opt.installments}x de {format_brl(opt.installment_value)}"
        for opt in orcamento.installments
        if chosen is None or opt.installments in chosen
    ]
    return "\n".join(lines)


def message_variables(orcamento, trade_in_name: Optional[str] = None, selected: Optional[Iterable[int]] = None) -> Dict[str, str]:
    has_trade = orcamento.trade_in_value > 0
    return {
        "produto": orcamento.product_name,
        "preco": format_brl(orcamento.selling_price),
        "parcelas": installment_lines(orcamento, selected) or SEM_PARCELAS,
        "troca": (trade_in_name or "") if has_trade else "",
        "valor_troca": format_brl(orcamento.trade_in_value) if has_trade else "",
        "total": format_brl(orcamento.final_price_to_pay),
    }


def apply_template(template: str, variables: Dict[str, str]) -> str:
    out = template or ""
    for key, value in variables.items():
        out = out.replace("{" + key + "}", value)
    return out


def whatsapp_link(message: str) -> str:
    return f"https://wa.me/?text={quote(message)}"
