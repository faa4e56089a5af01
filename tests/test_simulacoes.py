from dataclasses import replace
from decimal import Decimal

import pytest

from conftest import DAY_MS, fail_on, novo_iphone, proposta_estoque, proposta_manual, snapshot
from revenda.domain.errors import IllegalStateError, NotFoundError, ValidationError
from revenda.domain.models import (
    ProductStatus,
    Proposal,
    ProposalOrigin,
    ProposalStatus,
    TradeIn,
    TransactionKind,
)
from revenda.infra.db import connect


def test_salvar_cria_rascunho(ctx, clock):
    p = proposta_manual(ctx)
    assert p.id
    assert p.status is ProposalStatus.DRAFT
    assert p.created_at == clock.now
    assert p.mode is ProposalOrigin.SIMULATION
    assert p.selling_price == Decimal("5911.20")
    assert p.total_cost_brl == Decimal("4926.00")
    assert ctx.simulacoes.find_by_id(p.id) == p


def test_nome_do_produto_montado_dos_campos(ctx):
    p = ctx.simulacoes.save(Proposal(
        customer_name="Ana", product_name="", product_name_only="iPhone 15",
        product_memory="128GB", product_color="Preto",
        total_cost_brl=Decimal("4926"), selling_price=Decimal("5911.20"),
    ))
    assert p.product_name == "iPhone 15 128GB Preto"


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"customer_name": " "}, "customer_name"),
        ({"product_name": "", "product_name_only": None, "product_memory": None, "product_color": None},
         "product_name"),
        ({"selling_price": Decimal("-1")}, "selling_price"),
        ({"trade_in": TradeIn(name="", value=Decimal("500"))}, "trade_in_name"),
        ({"trade_in": TradeIn(name="iPhone 11", value=Decimal("-5"))}, "trade_in_value"),
        ({"mode": ProposalOrigin.FROM_STOCK, "product_id": None}, "product_id"),
    ],
)
def test_validacao_da_proposta(ctx, changes, field):
    base = Proposal(customer_name="Ana", product_name="iPhone 15",
                    total_cost_brl=Decimal("4926"), selling_price=Decimal("5911.20"))
    with pytest.raises(ValidationError) as exc:
        ctx.simulacoes.save(replace(base, **changes))
    assert exc.value.field == field
    assert ctx.simulacoes.list() == []


def test_troca_vazia_e_descartada(ctx):
    p = ctx.simulacoes.save(Proposal(
        customer_name="Ana", product_name="iPhone 15",
        total_cost_brl=Decimal("4926"), selling_price=Decimal("5911.20"),
        trade_in=TradeIn(name="", value=Decimal("0")),
    ))
    assert p.trade_in is None
    assert ctx.simulacoes.find_by_id(p.id).trade_in is None


def test_atualizar_preserva_criacao_e_status(ctx, clock):
    p = proposta_manual(ctx)
    clock.advance(DAY_MS)
    updated = ctx.simulacoes.save(replace(p, selling_price=Decimal("6000"), created_at=clock.now,
                                          status=ProposalStatus.SOLD))
    assert updated.selling_price == Decimal("6000")
    assert updated.created_at == p.created_at
    assert updated.status is ProposalStatus.DRAFT
    assert len(ctx.simulacoes.list()) == 1


def test_atualizar_proposta_inexistente(ctx):
    p = replace(proposta_manual(ctx), id="nao-existe")
    with pytest.raises(NotFoundError):
        ctx.simulacoes.save(p)


def test_proposta_expirada_nao_pode_ser_alterada(ctx, clock):
    p = proposta_manual(ctx)
    clock.advance(7 * DAY_MS + 1)
    assert ctx.simulacoes.is_expired(p)
    with pytest.raises(IllegalStateError) as exc:
        ctx.simulacoes.save(replace(p, selling_price=Decimal("6000")))
    assert exc.value.rule == "proposal_expired"
    assert ctx.simulacoes.find_by_id(p.id).selling_price == Decimal("5911.20")


def test_abrir_proposta_valida_devolve_a_mesma(ctx, clock):
    p = proposta_manual(ctx)
    clock.advance(7 * DAY_MS)
    assert ctx.simulacoes.open_for_edit(p.id) == p
    assert len(ctx.simulacoes.list()) == 1


def test_abrir_proposta_expirada_cria_novo_rascunho(ctx, clock):
    p = proposta_manual(ctx, trade_in=TradeIn(name="iPhone 11", value=Decimal("1000")))
    clock.advance(8 * DAY_MS)

    draft = ctx.simulacoes.open_for_edit(p.id)
    assert draft.id != p.id
    assert draft.created_at == clock.now
    assert draft.status is ProposalStatus.DRAFT
    assert draft.sold_at is None
    assert draft.customer_full_name == "Ana Lima"
    assert draft.trade_in == p.trade_in
    assert not ctx.simulacoes.is_expired(draft)

    # o histórico original fica intacto
    assert ctx.simulacoes.find_by_id(p.id) == p
    assert len(ctx.simulacoes.list()) == 2


def test_remover_proposta(ctx):
    p = proposta_manual(ctx)
    ctx.simulacoes.delete(p.id)
    assert ctx.simulacoes.list() == []
    with pytest.raises(NotFoundError):
        ctx.simulacoes.delete(p.id)


def test_marcar_encomendada(ctx):
    item = ctx.estoque.create(novo_iphone(status=ProductStatus.ORDERED))
    p = proposta_manual(ctx)
    ordered = ctx.simulacoes.mark_ordered(p.id, item.id)
    assert ordered.status is ProposalStatus.ORDERED
    stored = ctx.simulacoes.find_by_id(p.id)
    assert stored.status is ProposalStatus.ORDERED
    assert stored.product_id == item.id

    with pytest.raises(NotFoundError):
        ctx.simulacoes.mark_ordered(p.id, "nao-existe")


def test_encomendar_cotacao_manual(ctx, clock):
    p = proposta_manual(ctx)
    item = ctx.simulacoes.promote_to_order(p.id)

    assert item.status is ProductStatus.ORDERED
    assert item.observation == "RESERVADO PARA: Ana Lima"
    assert item.total_cost_brl == Decimal("4926.00")
    assert item.descricao == "iPhone 15 128GB Preto"
    assert ctx.estoque.find_by_id(item.id) == item

    [tx] = ctx.caixa.list()
    assert tx.kind is TransactionKind.STOCK_ENTRY
    assert tx.amount == Decimal("4926.00")
    assert tx.related_id == item.id
    assert "Reserva Ana Lima" in tx.description

    stored = ctx.simulacoes.find_by_id(p.id)
    assert stored.status is ProposalStatus.ORDERED
    assert stored.product_id == item.id
    assert ctx.estoque.list_available() == []

    with pytest.raises(IllegalStateError) as exc:
        ctx.simulacoes.promote_to_order(p.id)
    assert exc.value.rule == "already_ordered"


def test_so_cotacao_manual_vira_encomenda(ctx):
    item = ctx.estoque.create(novo_iphone())
    p = proposta_estoque(ctx, item)
    before = snapshot(ctx)
    with pytest.raises(IllegalStateError) as exc:
        ctx.simulacoes.promote_to_order(p.id)
    assert exc.value.rule == "order_requires_manual_quote"
    assert snapshot(ctx) == before


def test_encomenda_de_proposta_expirada(ctx, clock):
    p = proposta_manual(ctx)
    clock.advance(7 * DAY_MS + 1)
    with pytest.raises(IllegalStateError) as exc:
        ctx.simulacoes.promote_to_order(p.id)
    assert exc.value.rule == "proposal_expired"
    assert ctx.estoque.list() == []


@pytest.mark.parametrize(
    "repo, method",
    [("produtos", "insert"), ("transacoes", "insert"), ("simulacoes", "mark_ordered")],
)
def test_encomenda_tudo_ou_nada(ctx, monkeypatch, repo, method):
    p = proposta_manual(ctx)
    before = snapshot(ctx)
    fail_on(monkeypatch, getattr(ctx.simulacoes, repo), method)
    with pytest.raises(Exception):
        ctx.simulacoes.promote_to_order(p.id)
    assert snapshot(ctx) == before


def test_status_legado_lido_como_rascunho(ctx, db_path):
    p = proposta_manual(ctx)
    with connect(db_path) as c:
        c.execute("UPDATE simulacao SET status = 'saved' WHERE id = ?", (p.id,))
    assert ctx.simulacoes.find_by_id(p.id).status is ProposalStatus.DRAFT
    with connect(db_path) as c:
        c.execute("UPDATE simulacao SET status = NULL WHERE id = ?", (p.id,))
    assert ctx.simulacoes.find_by_id(p.id).status is ProposalStatus.DRAFT


def test_assinatura_de_simulacoes(ctx):
    seen = []
    unsubscribe = ctx.simulacoes.subscribe(seen.append)
    assert seen == [[]]
    p = proposta_manual(ctx)
    assert [x.id for x in seen[-1]] == [p.id]
    unsubscribe()
    proposta_manual(ctx, customer="Bruno")
    assert len(seen) == 2
