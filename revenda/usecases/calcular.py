# revenda/usecases/calcular.py
"""
UC: Calculadora de orçamento.

- orcamento_do_estoque(item, ...)  -> custo vem do item cadastrado
- orcamento_manual(cost_usd, ...)  -> custo calculado a partir da cotação em USD
- proposta_de(orcamento, cliente)  -> Proposal pronta para SimulacaoService.save

O preço pode ser definido pela margem (%) ou por um preço-alvo; neste caso
a margem é calculada ao contrário. Parcelas incidem sobre o valor final,
já descontada a troca.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from revenda.domain.errors import ValidationError
from revenda.domain.formulas import (
    ZERO,
    InstallmentOption,
    compute_base_usd,
    compute_effective_rate,
    compute_final_price_to_pay,
    compute_installments,
    compute_margin_amount,
    compute_margin_percent,
    compute_profit,
    compute_selling_price,
    compute_total_cost_brl,
    to_decimal,
)
from revenda.domain.models import InstallmentRule, ProductItem, Proposal, ProposalOrigin, TradeIn

DEFAULT_MARGIN = Decimal("20")
NOME_ORCAMENTO_MANUAL = "Orçamento Personalizado"


@dataclass(frozen=True)
class Orcamento:
    mode: ProposalOrigin
    product_name: str
    cost_usd: Decimal
    fee_usd: Decimal
    exchange_rate: Decimal
    spread: Decimal
    import_tax_brl: Decimal
    base_usd: Decimal
    effective_rate: Decimal
    total_cost_brl: Decimal
    selling_price: Decimal
    margin_amount: Decimal
    margin_percent: Decimal
    trade_in_value: Decimal
    final_price_to_pay: Decimal
    profit: Decimal
    installments: Tuple[InstallmentOption, ...] = ()
    product_name_only: Optional[str] = None
    product_memory: Optional[str] = None
    product_color: Optional[str] = None
    product_id: Optional[str] = None


def _precificar(total_cost_brl: Decimal, margin_percent, target_price) -> Tuple[Decimal, Decimal]:
    if target_price is not None:
        selling = to_decimal(target_price)
        if selling < 0:
            raise ValidationError("Preço-alvo não pode ser negativo", field="target_price")
        return selling, compute_margin_percent(selling, total_cost_brl)
    margin = DEFAULT_MARGIN if margin_percent is None else to_decimal(margin_percent)
    return compute_selling_price(total_cost_brl, margin), margin


def _montar(
    *,
    mode: ProposalOrigin,
    product_name: str,
    cost_usd: Decimal,
    fee_usd: Decimal,
    exchange_rate: Decimal,
    spread: Decimal,
    import_tax_brl: Decimal,
    total_cost_brl: Decimal,
    margin_percent,
    target_price,
    trade_in_value,
    rules: Iterable[InstallmentRule],
    **extra,
) -> Orcamento:
    trade = to_decimal(trade_in_value if trade_in_value is not None else ZERO)
    if trade < 0:
        raise ValidationError("Valor da troca não pode ser negativo", field="trade_in_value")
    selling, margin = _precificar(total_cost_brl, margin_percent, target_price)
    final = compute_final_price_to_pay(selling, trade)
    return Orcamento(
        mode=mode,
        product_name=product_name,
        cost_usd=cost_usd,
        fee_usd=fee_usd,
        exchange_rate=exchange_rate,
        spread=spread,
        import_tax_brl=import_tax_brl,
        base_usd=compute_base_usd(cost_usd, fee_usd),
        effective_rate=compute_effective_rate(exchange_rate, spread),
        total_cost_brl=total_cost_brl,
        selling_price=selling,
        margin_amount=compute_margin_amount(selling, total_cost_brl),
        margin_percent=margin,
        trade_in_value=trade,
        final_price_to_pay=final,
        profit=compute_profit(final, total_cost_brl),
        installments=tuple(compute_installments(final, rules)),
        **extra,
    )


def orcamento_do_estoque(
    item: ProductItem,
    margin_percent=None,
    target_price=None,
    trade_in_value=ZERO,
    rules: Iterable[InstallmentRule] = (),
) -> Orcamento:
    """Orçamento de um item já cadastrado (novo ou seminovo)."""
    return _montar(
        mode=ProposalOrigin.FROM_USED_STOCK if item.is_used else ProposalOrigin.FROM_STOCK,
        product_name=item.descricao,
        cost_usd=item.cost_usd,
        fee_usd=item.fee_usd,
        exchange_rate=item.exchange_rate,
        spread=item.spread,
        import_tax_brl=item.import_tax_brl,
        total_cost_brl=item.total_cost_brl,
        margin_percent=margin_percent,
        target_price=target_price,
        trade_in_value=trade_in_value,
        rules=rules,
        product_name_only=item.name,
        product_memory=item.memory,
        product_color=item.color,
        product_id=item.id,
    )


def orcamento_manual(
    cost_usd,
    fee_usd,
    exchange_rate,
    spread=ZERO,
    import_tax_brl=ZERO,
    margin_percent=None,
    target_price=None,
    trade_in_value=ZERO,
    rules: Iterable[InstallmentRule] = (),
    name: Optional[str] = None,
    memory: Optional[str] = None,
    color: Optional[str] = None,
) -> Orcamento:
    """Cotação manual: custo = (cost_usd + fee_usd) * (câmbio + spread) + imposto."""
    cost_usd, fee_usd = to_decimal(cost_usd), to_decimal(fee_usd)
    rate, spread, tax = to_decimal(exchange_rate), to_decimal(spread), to_decimal(import_tax_brl)
    descricao = " ".join(p.strip() for p in (name, memory, color) if p and p.strip())
    return _montar(
        mode=ProposalOrigin.SIMULATION,
        product_name=descricao or NOME_ORCAMENTO_MANUAL,
        cost_usd=cost_usd,
        fee_usd=fee_usd,
        exchange_rate=rate,
        spread=spread,
        import_tax_brl=tax,
        total_cost_brl=compute_total_cost_brl(
            compute_base_usd(cost_usd, fee_usd), compute_effective_rate(rate, spread), tax
        ),
        margin_percent=margin_percent,
        target_price=target_price,
        trade_in_value=trade_in_value,
        rules=rules,
        product_name_only=name,
        product_memory=memory,
        product_color=color,
    )


def proposta_de(
    orc: Orcamento,
    customer_name: str,
    customer_surname: str = "",
    customer_phone: str = "",
    trade_in: Optional[TradeIn] = None,
) -> Proposal:
    """Converte o orçamento numa proposta (ainda não gravada)."""
    if trade_in is not None and to_decimal(trade_in.value) != orc.trade_in_value:
        raise ValidationError("Valor da troca difere do orçamento", field="trade_in_value")
    return Proposal(
        customer_name=customer_name,
        customer_surname=customer_surname,
        customer_phone=customer_phone,
        product_name=orc.product_name,
        product_name_only=orc.product_name_only,
        product_memory=orc.product_memory,
        product_color=orc.product_color,
        cost_usd=orc.cost_usd,
        fee_usd=orc.fee_usd,
        exchange_rate=orc.exchange_rate,
        spread=orc.spread,
        import_tax_brl=orc.import_tax_brl,
        total_cost_brl=orc.total_cost_brl,
        selling_price=orc.selling_price,
        mode=orc.mode,
        product_id=orc.product_id,
        trade_in=trade_in,
    )
