from dataclasses import replace
from decimal import Decimal

import pytest

from conftest import DAY_MS, fail_on, novo_iphone, proposta_estoque, proposta_manual, snapshot
from revenda.domain.errors import IllegalStateError, NotFoundError, PersistenceError, ValidationError
from revenda.domain.models import ProductItem, ProductStatus, ProposalStatus, TradeIn, TransactionKind
from revenda.domain.policies import reservation_note
from revenda.usecases.contexto import criar_contexto
from revenda.usecases.registrar_venda import run_venda


def _por_tipo(ctx, kind):
    return [t for t in ctx.caixa.list() if t.kind is kind]


def test_venda_de_item_do_estoque(ctx, clock):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item)
    clock.advance(1000)

    res = ctx.vendas.vender(p.id)

    assert res.proposal.status is ProposalStatus.SOLD
    assert res.proposal.sold_at == clock.now
    stored = ctx.simulacoes.find_by_id(p.id)
    assert stored.status is ProposalStatus.SOLD
    assert stored.sold_at == clock.now

    assert res.removed_product_id == item.id
    assert ctx.estoque.find_by_id(item.id) is None

    [sale] = _por_tipo(ctx, TransactionKind.SALE)
    assert sale == res.sale
    assert sale.amount == Decimal("5911.20")
    assert sale.cost == Decimal("4926.00")
    assert sale.related_id == p.id
    assert sale.trade_in_value is None
    assert sale.description == "Venda: iPhone 15 128GB Preto - Ana Lima"
    assert _por_tipo(ctx, TransactionKind.TRADE_IN_ENTRY) == []
    assert res.trade_in_product is None

    s = ctx.caixa.summary()
    assert s.realized_profit == Decimal("985.20")
    assert s.cash_out == Decimal("4926.00")


def test_venda_com_troca(ctx, clock):
    item = ctx.estoque.create(novo_iphone())
    troca = TradeIn(name="iPhone 11", value=Decimal("1000"), memory="64GB", color="Branco", battery=82)
    p = proposta_estoque(ctx, item, trade_in=troca)

    res = ctx.vendas.vender(p.id)

    [sale] = _por_tipo(ctx, TransactionKind.SALE)
    assert sale.amount == Decimal("4911.20")
    assert sale.cost == Decimal("4926.00")
    assert sale.trade_in_value == Decimal("1000")

    [entry] = _por_tipo(ctx, TransactionKind.TRADE_IN_ENTRY)
    assert entry.amount == Decimal("1000.00")
    assert entry.description == "Entrada Troca: iPhone 11 64GB Branco"

    [usado] = ctx.estoque.list()
    assert usado == res.trade_in_product
    assert usado.is_used
    assert usado.status is ProductStatus.IN_STOCK
    assert usado.total_cost_brl == Decimal("1000")
    assert usado.battery_health == 82
    assert usado.cost_usd == 0
    assert entry.related_id == usado.id

    s = ctx.caixa.summary()
    assert s.realized_profit == Decimal("-14.80")
    assert s.total_stock_investment == Decimal("5926.00")


def test_troca_sem_memoria_e_cor(ctx):
    p = proposta_manual(ctx, trade_in=TradeIn(name="Galaxy S20", value=Decimal("700")))
    res = ctx.vendas.vender(p.id)
    assert res.trade_in_product.descricao == "Galaxy S20 N/D N/D"
    assert res.trade_in_product.battery_health is None


def test_venda_manual_sem_reserva_e_valida(ctx):
    livre = ctx.estoque.create(novo_iphone())
    p = proposta_manual(ctx)

    res = ctx.vendas.vender(p.id)

    assert res.removed_product_id is None
    assert [it.id for it in ctx.estoque.list()] == [livre.id]
    assert len(_por_tipo(ctx, TransactionKind.SALE)) == 1


def test_venda_manual_baixa_item_reservado_para_o_cliente(ctx):
    ctx.estoque.create(novo_iphone(observation=reservation_note("Bruno Souza")))
    reservado = ctx.estoque.create(novo_iphone(observation=reservation_note("Ana Lima")))
    p = proposta_manual(ctx)

    res = ctx.vendas.vender(p.id)

    assert res.removed_product_id == reservado.id
    assert ctx.estoque.find_by_id(reservado.id) is None
    assert len(ctx.estoque.list()) == 1


def test_encomenda_precisa_ser_recebida_antes_da_venda(ctx):
    p = proposta_manual(ctx)
    item = ctx.simulacoes.promote_to_order(p.id)
    before = snapshot(ctx)

    with pytest.raises(IllegalStateError) as exc:
        ctx.vendas.vender(p.id)
    assert exc.value.rule == "ordered_item_not_received"
    assert snapshot(ctx) == before

    ctx.estoque.receive(item.id)
    res = ctx.vendas.vender(p.id)
    assert res.removed_product_id == item.id
    assert ctx.estoque.list() == []
    # compra da encomenda + venda
    assert [t.kind for t in ctx.caixa.list()].count(TransactionKind.STOCK_ENTRY) == 1
    assert ctx.caixa.summary().realized_profit == Decimal("985.20")


def test_proposta_vendida_nao_vende_de_novo(ctx):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item)
    ctx.vendas.vender(p.id)
    before = snapshot(ctx)

    with pytest.raises(IllegalStateError) as exc:
        ctx.vendas.vender(p.id)
    assert exc.value.rule == "sold_is_final"
    assert snapshot(ctx) == before

    with pytest.raises(IllegalStateError):
        ctx.simulacoes.save(replace(p, selling_price=Decimal("1")))


def test_proposta_expirada_nao_pode_ser_vendida(ctx, clock):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item)
    clock.advance(7 * DAY_MS + 1)
    before = snapshot(ctx)

    with pytest.raises(IllegalStateError) as exc:
        ctx.vendas.vender(p.id)
    assert exc.value.rule == "proposal_expired"
    assert snapshot(ctx) == before


def test_preco_zero_nao_vende(ctx):
    p = proposta_manual(ctx, margin=-100)
    assert p.selling_price == 0
    with pytest.raises(ValidationError):
        ctx.vendas.vender(p.id)
    assert ctx.simulacoes.find_by_id(p.id).status is ProposalStatus.DRAFT


def test_proposta_de_estoque_sem_item(ctx):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item)
    ctx.estoque.delete(item.id)
    with pytest.raises(NotFoundError):
        ctx.vendas.vender(p.id)
    assert ctx.simulacoes.find_by_id(p.id).status is ProposalStatus.DRAFT


def test_proposta_inexistente(ctx):
    with pytest.raises(NotFoundError):
        ctx.vendas.vender("nao-existe")


@pytest.mark.parametrize(
    "repo, method, nth",
    [
        ("simulacoes", "mark_sold", 1),
        ("produtos", "delete", 1),
        ("transacoes", "insert", 1),   # SALE
        ("produtos", "insert", 1),     # seminovo da troca
        ("transacoes", "insert", 2),   # TRADE_IN_ENTRY
    ],
)
def test_venda_tudo_ou_nada(ctx, monkeypatch, repo, method, nth):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item, trade_in=TradeIn(name="iPhone 11", value=Decimal("1000")))
    before = snapshot(ctx)

    fail_on(monkeypatch, getattr(ctx.vendas, repo), method, nth=nth)
    with pytest.raises(PersistenceError):
        ctx.vendas.vender(p.id)

    assert snapshot(ctx) == before
    assert ctx.simulacoes.find_by_id(p.id).status is ProposalStatus.DRAFT


def test_assinantes_so_sao_avisados_apos_commit(ctx, monkeypatch):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item)
    seen = []
    ctx.caixa.subscribe(seen.append)
    assert len(seen) == 1

    fail_on(monkeypatch, ctx.vendas.transacoes, "insert")
    with pytest.raises(PersistenceError):
        ctx.vendas.vender(p.id)
    assert len(seen) == 1

    monkeypatch.undo()
    ctx.vendas.vender(p.id)
    assert len(seen) == 2
    assert {t.kind for t in seen[-1]} == {TransactionKind.STOCK_ENTRY, TransactionKind.SALE}


def test_run_venda_usa_parametros_do_banco(db_path):
    ctx = criar_contexto(db_path)
    item = ctx.estoque.create(ProductItem(name="iPhone 13", memory="128GB", color="Azul",
                                          is_used=True, total_cost_brl=Decimal("2000")))
    p = proposta_estoque(ctx, item)
    res = run_venda(p.id, db_path=db_path)
    assert res.sale.amount == Decimal("2400")
    assert res.proposal.mode.value == "FROM_USED_STOCK"
