from decimal import Decimal

import pytest

from revenda.config import DEFAULTS
from revenda.domain.errors import ValidationError
from revenda.domain.formulas import (
    compute_base_usd,
    compute_effective_rate,
    compute_final_price_to_pay,
    compute_installment_value,
    compute_installments,
    compute_margin_amount,
    compute_margin_percent,
    compute_new_item_cost,
    compute_profit,
    compute_selling_price,
    compute_total_cost_brl,
    round_brl,
    summarize_ledger,
    to_decimal,
)
from revenda.domain.models import InstallmentRule, Transaction, TransactionKind


def test_custo_preco_lucro_item_novo():
    base = compute_base_usd(900, 20)
    rate = compute_effective_rate("5.20", "0.10")
    total = compute_total_cost_brl(base, rate, 50)
    # 920 * 5.30 + 50
    assert total == Decimal("4926.00")
    assert compute_new_item_cost(900, 20, "5.20", "0.10", 50) == total

    selling = compute_selling_price(total, 20)
    assert selling == Decimal("5911.20")
    final = compute_final_price_to_pay(selling)
    assert final == Decimal("5911.20")
    assert compute_profit(final, total) == Decimal("985.20")
    assert compute_margin_amount(selling, total) == Decimal("985.20")
    assert compute_installment_value(final, 0, 12) == Decimal("492.60")


def test_troca_pode_gerar_lucro_negativo():
    total = Decimal("4926.00")
    selling = compute_selling_price(total, 20)
    final = compute_final_price_to_pay(selling, 1000)
    assert final == Decimal("4911.20")
    assert compute_profit(final, total) == Decimal("-14.80")


def test_valor_final_nunca_negativo():
    assert compute_final_price_to_pay(500, 800) == Decimal("0")


def test_margem_reversa_devolve_a_margem_original():
    total = Decimal("4926.00")
    selling = compute_selling_price(total, Decimal("17.5"))
    assert compute_margin_percent(selling, total) == Decimal("17.5")


def test_margem_reversa_com_custo_zero():
    with pytest.raises(ValidationError):
        compute_margin_percent(100, 0)


def test_parcela_sobre_valor_final_com_acrescimo():
    # 4911.20 * 1.15 / 10
    assert round_brl(compute_installment_value("4911.20", 15, 10)) == Decimal("564.79")


@pytest.mark.parametrize("n", [0, -1])
def test_parcela_exige_numero_positivo(n):
    with pytest.raises(ValidationError):
        compute_installment_value(100, 0, n)


def test_tabela_padrao_de_parcelas():
    rules = [InstallmentRule(n, r) for n, r in DEFAULTS.installment_rules]
    assert [r.installments for r in rules] == list(range(1, 13))
    assert rules[0].rate == 0
    assert rules[1].rate == Decimal("1.5")
    assert rules[11].rate == Decimal("16.5")

    table = compute_installments(Decimal("1000"), rules)
    assert table[0].installment_value == Decimal("1000")
    assert table[1].total == Decimal("1015.0")
    assert round_brl(table[11].installment_value) == Decimal("97.08")


def test_round_brl_meio_para_cima():
    assert round_brl(Decimal("0.005")) == Decimal("0.01")
    assert round_brl(Decimal("2.675")) == Decimal("2.68")


def test_to_decimal_aceita_float_sem_ruido_binario():
    assert to_decimal(5.2) == Decimal("5.2")
    with pytest.raises(ValidationError):
        to_decimal("abc")
    with pytest.raises(ValidationError):
        to_decimal(None)


def _tx(kind, amount, cost=None):
    return Transaction(kind=kind, description="x", amount=Decimal(amount),
                       cost=Decimal(cost) if cost else None, date=0)


def test_agregados_do_caixa():
    txs = [
        _tx(TransactionKind.STOCK_ENTRY, "4926.00"),
        _tx(TransactionKind.SALE, "4911.20", "4926.00"),
        _tx(TransactionKind.TRADE_IN_ENTRY, "1000.00"),
        _tx(TransactionKind.SALE, "1500.00", "1000.00"),
    ]
    s = summarize_ledger(txs)
    assert s.cash_in == Decimal("6411.20")
    assert s.gross_revenue == s.cash_in
    assert s.cash_out == Decimal("4926.00")
    assert s.total_stock_investment == Decimal("5926.00")
    assert s.realized_profit == Decimal("485.20")
    assert s.sales_count == 2


def test_agregados_sem_lancamentos():
    s = summarize_ledger([])
    assert s.cash_in == 0 and s.realized_profit == 0 and s.sales_count == 0
