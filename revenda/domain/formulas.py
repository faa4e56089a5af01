"""
Money formulas for pricing, trade-in and installments.

These functions implement the cost and price rules used by the
calculator, the stores and the sale orchestrator. Every function is
pure: it depends solely on its inputs and does not modify any
external state, which makes them safe to unit test individually.

All monetary values are handled as ``Decimal`` at full precision.
Rounding to cents happens only at presentation boundaries through
:func:`round_brl`, never inside a chain of calculations.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Union

from .errors import ValidationError
from .models import InstallmentRule, Transaction, TransactionKind

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` to ``Decimal``.

    Floats go through ``str`` so that ``5.2`` becomes ``Decimal('5.2')``
    instead of its binary expansion.
    """
    if value is None:
        raise ValidationError("valor monetário ausente")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except Exception as e:
        raise ValidationError(f"valor monetário inválido: {value!r}") from e


def round_brl(value: Number) -> Decimal:
    """Round to 2 decimal places (half up), for display and reports."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_effective_rate(rate: Number, spread: Number) -> Decimal:
    """Exchange rate actually applied to USD costs."""
    return to_decimal(rate) + to_decimal(spread)


def compute_base_usd(cost_usd: Number, fee_usd: Number) -> Decimal:
    return to_decimal(cost_usd) + to_decimal(fee_usd)


def compute_total_cost_brl(base_usd: Number, effective_rate: Number, import_tax: Number) -> Decimal:
    """Landed cost in BRL: ``base_usd * effective_rate + import_tax``."""
    return to_decimal(base_usd) * to_decimal(effective_rate) + to_decimal(import_tax)


def compute_new_item_cost(
    cost_usd: Number,
    fee_usd: Number,
    exchange_rate: Number,
    spread: Number,
    import_tax_brl: Number,
) -> Decimal:
    """Shortcut for the full new-item cost chain."""
    return compute_total_cost_brl(
        compute_base_usd(cost_usd, fee_usd),
        compute_effective_rate(exchange_rate, spread),
        import_tax_brl,
    )


def compute_selling_price(total_cost_brl: Number, margin_percent: Number) -> Decimal:
    return to_decimal(total_cost_brl) * (1 + to_decimal(margin_percent) / HUNDRED)


def compute_margin_amount(selling_price: Number, total_cost_brl: Number) -> Decimal:
    return to_decimal(selling_price) - to_decimal(total_cost_brl)


def compute_margin_percent(selling_price: Number, total_cost_brl: Number) -> Decimal:
    """Reverse computation: margin that turns ``total_cost_brl`` into ``selling_price``.

    Raises
    ------
    ValidationError
        When ``total_cost_brl`` is zero; the reverse computation is
        undefined in that case.
    """
    cost = to_decimal(total_cost_brl)
    if cost == ZERO:
        raise ValidationError("custo total zero: margem reversa indisponível", field="total_cost_brl")
    return (to_decimal(selling_price) / cost - 1) * HUNDRED


def compute_final_price_to_pay(selling_price: Number, trade_in_value: Number = ZERO) -> Decimal:
    """Amount the customer still has to pay after the trade-in deduction."""
    return max(ZERO, to_decimal(selling_price) - to_decimal(trade_in_value))


def compute_profit(final_price_to_pay: Number, total_cost_brl: Number) -> Decimal:
    """Profit measured against what the shop nets after the trade-in.

    Goes negative when the trade-in eats the whole margin, even if the
    quoted margin was positive.
    """
    return to_decimal(final_price_to_pay) - to_decimal(total_cost_brl)


def compute_installment_value(base_amount: Number, rate_percent: Number, n: int) -> Decimal:
    """Value of each of ``n`` installments over ``base_amount`` plus ``rate_percent``.

    ``base_amount`` is the post-trade-in final price.
    """
    if n is None or int(n) <= 0:
        raise ValidationError("número de parcelas deve ser positivo", field="installments")
    total = to_decimal(base_amount) * (1 + to_decimal(rate_percent) / HUNDRED)
    return total / int(n)


@dataclass(frozen=True)
class InstallmentOption:
    installments: int
    rate: Decimal
    installment_value: Decimal
    total: Decimal


def compute_installments(final_price_to_pay: Number, rules: Iterable[InstallmentRule]) -> List[InstallmentOption]:
    """Installment table for every configured rule, in rule order."""
    base = to_decimal(final_price_to_pay)
    out: List[InstallmentOption] = []
    for rule in rules:
        value = compute_installment_value(base, rule.rate, rule.installments)
        out.append(
            InstallmentOption(
                installments=rule.installments,
                rate=to_decimal(rule.rate),
                installment_value=value,
                total=value * rule.installments,
            )
        )
    return out


# -------------------------
# Agregados do caixa
# -------------------------

@dataclass(frozen=True)
class LedgerSummary:
    cash_in: Decimal
    cash_out: Decimal
    gross_revenue: Decimal
    total_stock_investment: Decimal
    realized_profit: Decimal
    sales_count: int


def sale_profit(tx: Transaction) -> Decimal:
    """Profit of a single ledger row (zero for non-sale rows)."""
    if tx.kind is TransactionKind.SALE:
        return tx.amount - (tx.cost or ZERO)
    return ZERO


def summarize_ledger(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Aggregate ledger rows; always recomputed from the rows given.

    - cash in / gross revenue: sum of SALE amounts (net cash received)
    - cash out: sum of STOCK_ENTRY amounts (trade-ins are non-cash)
    - stock investment: STOCK_ENTRY + TRADE_IN_ENTRY
    - realized profit: sum over SALE rows of ``amount - cost``
    """
    sales = purchases = trade_ins = profit = ZERO
    count = 0
    for tx in transactions:
        if tx.kind is TransactionKind.SALE:
            sales += tx.amount
            profit += sale_profit(tx)
            count += 1
        elif tx.kind is TransactionKind.STOCK_ENTRY:
            purchases += tx.amount
        elif tx.kind is TransactionKind.TRADE_IN_ENTRY:
            trade_ins += tx.amount
        else:
            raise ValueError(f"tipo de lançamento desconhecido: {tx.kind!r}")
    return LedgerSummary(
        cash_in=sales,
        cash_out=purchases,
        gross_revenue=sales,
        total_stock_investment=purchases + trade_ins,
        realized_profit=profit,
        sales_count=count,
    )
