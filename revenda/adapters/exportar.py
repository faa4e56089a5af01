# revenda/adapters/exportar.py
"""
Exportação do caixa para CSV (compatível com Excel pt-BR).

- separador ';'
- UTF-8 com BOM
- valores com vírgula decimal e 2 casas
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

import pandas as pd

from revenda.domain.formulas import ZERO, round_brl, sale_profit
from revenda.domain.models import Transaction, TransactionKind
from revenda.infra.logger import log_file_operation

COLUMNS = [
    "Data",
    "Hora",
    "Tipo Movimentação",
    "Descrição",
    "Valor (R$)",
    "Custo Produto (R$)",
    "Lucro (R$)",
    "Observações (Troca)",
]


def tipo_label(kind: TransactionKind) -> str:
    if kind is TransactionKind.SALE:
        return "Venda"
    elif kind is TransactionKind.STOCK_ENTRY:
        return "Compra Estoque"
    elif kind is TransactionKind.TRADE_IN_ENTRY:
        return "Entrada Troca"
    raise ValueError(f"tipo de lançamento desconhecido: {kind!r}")


def format_decimal_br(value: Optional[Decimal]) -> str:
    """Decimal -> '4911,20' (sem separador de milhar)."""
    return f"{round_brl(value if value is not None else ZERO):.2f}".replace(".", ",")


def ledger_dataframe(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows: List[list] = []
    for t in transactions:
        when = datetime.fromtimestamp(t.date / 1000)
        troca = f"Troca aceita: R$ {format_decimal_br(t.trade_in_value)}" if t.trade_in_value else ""
        rows.append([
            when.strftime("%d/%m/%Y"),
            when.strftime("%H:%M:%S"),
            tipo_label(t.kind),
            t.description,
            format_decimal_br(t.amount),
            format_decimal_br(t.cost),
            format_decimal_br(sale_profit(t)),
            troca,
        ])
    return pd.DataFrame(rows, columns=COLUMNS)


def default_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"relatorio_revenda_{now.strftime('%d-%m-%Y')}.csv"


def export_ledger_csv(transactions: Iterable[Transaction], path: str) -> int:
    """Grava o CSV em `path` e devolve o número de linhas exportadas."""
    df = ledger_dataframe(transactions)
    df.to_csv(path, sep=";", index=False, encoding="utf-8-sig")
    log_file_operation("export", path, rows_processed=len(df))
    return len(df)
