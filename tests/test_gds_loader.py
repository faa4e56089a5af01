from decimal import Decimal

import pandas as pd
import pytest

from revenda.adapters.gds_loader import _normalize_columns, _slug, load_produtos_from_xlsx
from revenda.domain.errors import ValidationError
from revenda.domain.models import ProductStatus, TransactionKind
from revenda.usecases.importar_estoque import row_to_item, run_importacao


def _planilha(tmp_path, rows, name="estoque.xlsx"):
    path = tmp_path / name
    pd.DataFrame(rows).to_excel(path, index=False)
    return str(path)


def test_slug_remove_acentos_e_pontuacao():
    assert _slug("  Memória ") == "memoria"
    assert _slug("Saúde da Bateria (%)") == "saude da bateria"
    assert _slug(None) == ""


def test_normalize_columns_sinonimos():
    df = pd.DataFrame(columns=["Modelo", "Armazenamento", "Cor", "Câmbio", "Custo USD", "Obs", "Coluna Extra"])
    assert list(_normalize_columns(df).columns) == [
        "name", "memory", "color", "exchange_rate", "cost_usd", "observation", "coluna_extra",
    ]


def test_load_produtos_descarta_linhas_vazias(tmp_path):
    path = _planilha(tmp_path, {
        "Produto": ["iPhone 15", None, "iPhone 13"],
        "Memória": ["128GB", None, "256GB"],
        "Cor": ["Preto", None, "Azul"],
        "Custo USD": ["900", None, None],
        "Cotação": ["5,20", None, None],
        "Seminovo": ["não", None, "sim"],
        "Custo Total": [None, None, "2.100,00"],
    })
    rows = load_produtos_from_xlsx(path)

    assert len(rows) == 2
    assert rows[0]["name"] == "iPhone 15"
    assert rows[0]["exchange_rate"] == "5,20"
    assert rows[0]["total_cost_brl"] is None
    assert rows[1]["total_cost_brl"] == "2.100,00"
    assert [r["linha"] for r in rows] == [2, 4]
    assert rows[1]["battery_health"] is None


def test_row_to_item_aplica_padroes(ctx):
    item = row_to_item(
        {"name": "iPhone 15", "memory": "128GB", "color": "Preto",
         "cost_usd": "900", "exchange_rate": "5,20", "status": "Encomenda"},
        ctx.settings,
    )
    assert item.spread == ctx.settings.default_spread
    assert item.fee_usd == ctx.settings.default_fee_usd
    assert item.exchange_rate == Decimal("5.20")
    assert item.status is ProductStatus.ORDERED
    assert not item.is_used


def test_importacao_grava_itens_e_compras(ctx, tmp_path):
    path = _planilha(tmp_path, {
        "Produto": ["iPhone 15", "iPhone 13"],
        "Memória": ["128GB", "256GB"],
        "Cor": ["Preto", "Azul"],
        "Custo USD": ["900", None],
        "Taxa": ["20", None],
        "Cotação": ["5,20", None],
        "Spread": ["0,10", None],
        "Imposto": ["50", None],
        "Usado": [None, "sim"],
        "Custo Total": [None, "2.100,00"],
        "Bateria": [None, "87%"],
    })

    result = run_importacao(path, ctx.estoque, ctx.settings)

    assert result["itens_importados"] == 2
    assert Decimal(result["custo_total"]) == Decimal("7026.00")
    items = {it.name: it for it in ctx.estoque.list()}
    assert items["iPhone 15"].total_cost_brl == Decimal("4926.00")
    assert items["iPhone 13"].battery_health == 87
    assert items["iPhone 13"].is_used
    txs = ctx.caixa.list()
    assert len(txs) == 2
    assert all(t.kind is TransactionKind.STOCK_ENTRY for t in txs)


def test_importacao_com_linha_invalida_nao_grava_nada(ctx, tmp_path):
    path = _planilha(tmp_path, {
        "Produto": ["iPhone 15", "iPhone 14"],
        "Memória": ["128GB", "128GB"],
        "Cor": ["Preto", "Roxo"],
        "Custo USD": ["900", "800"],
        "Cotação": ["5,20", None],
    })

    with pytest.raises(ValidationError) as exc:
        run_importacao(path, ctx.estoque, ctx.settings)

    assert str(exc.value).startswith("linha 3:")
    assert exc.value.field == "exchange_rate"
    assert ctx.estoque.list() == []
    assert ctx.caixa.list() == []


def test_erro_indica_linha_real_mesmo_com_linhas_vazias(ctx, tmp_path):
    path = _planilha(tmp_path, {
        "Produto": ["iPhone 15", None, "iPhone 14"],
        "Memória": ["128GB", None, "128GB"],
        "Cor": ["Preto", None, "Roxo"],
        "Custo USD": ["900", None, "800"],
        "Cotação": ["5,20", None, None],
    })

    with pytest.raises(ValidationError) as exc:
        run_importacao(path, ctx.estoque, ctx.settings)

    assert str(exc.value).startswith("linha 4:")
    assert ctx.estoque.list() == []
