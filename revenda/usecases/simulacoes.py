# revenda/usecases/simulacoes.py
"""
UC: Simulações (propostas para clientes).

Máquina de estados:
    rascunho (draft) -> encomendada (ordered) -> vendida (sold, terminal)

A expiração é uma sobreposição derivada do tempo, nunca gravada: uma
proposta expirada não pode ser vendida, encomendada nem alterada; abri-la
para edição cria um novo rascunho e preserva o registro histórico.
A transição para `sold` pertence exclusivamente ao orquestrador de venda.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Callable, List, Optional

from revenda.domain.errors import IllegalStateError, NotFoundError, ValidationError
from revenda.domain.formulas import ZERO, to_decimal
from revenda.domain.models import (
    ProductItem,
    ProductStatus,
    Proposal,
    ProposalOrigin,
    ProposalStatus,
)
from revenda.domain.policies import now_ms, proposal_expired, reservation_note
from revenda.infra.db import UnitOfWork
from revenda.infra.logger import log_transaction, log_venda
from revenda.infra.repositories import ProdutoRepo, SimulacaoRepo, TransacaoRepo
from revenda.infra.subscriptions import PRODUTOS, SIMULACOES, TRANSACOES, ChangeFeed
from revenda.usecases.estoque import prepare_item, stock_entry_for


def _clean(s: Optional[str]) -> Optional[str]:
    s = (s or "").strip()
    return s or None


def prepare_proposal(p: Proposal) -> Proposal:
    """Valida uma proposta antes de gravar e normaliza os campos."""
    if not isinstance(p.mode, ProposalOrigin):
        raise ValidationError(f"origem inválida: {p.mode!r}", field="mode")
    customer = _clean(p.customer_name)
    if customer is None:
        raise ValidationError("Nome do cliente é obrigatório", field="customer_name")

    name_only = _clean(p.product_name_only)
    memory = _clean(p.product_memory)
    color = _clean(p.product_color)
    product_name = _clean(p.product_name) or _clean(" ".join(x for x in (name_only, memory, color) if x))
    if product_name is None:
        raise ValidationError("Produto da proposta é obrigatório", field="product_name")

    if p.mode in (ProposalOrigin.FROM_STOCK, ProposalOrigin.FROM_USED_STOCK) and not p.product_id:
        raise ValidationError("Proposta de estoque precisa do item de origem", field="product_id")

    for field in ("selling_price", "total_cost_brl", "cost_usd", "fee_usd"):
        if to_decimal(getattr(p, field)) < 0:
            raise ValidationError(f"{field} não pode ser negativo", field=field)

    trade_in = p.trade_in
    if trade_in is not None:
        value = to_decimal(trade_in.value if trade_in.value is not None else ZERO)
        if value < 0:
            raise ValidationError("Valor da troca não pode ser negativo", field="trade_in_value")
        if value > 0 and not _clean(trade_in.name):
            raise ValidationError("Informe o aparelho recebido na troca", field="trade_in_name")
        if trade_in.battery is not None and not (0 <= int(trade_in.battery) <= 100):
            raise ValidationError("Saúde da bateria deve estar entre 0 e 100", field="trade_in_battery")
        if value == 0 and not _clean(trade_in.name):
            trade_in = None
        else:
            trade_in = replace(trade_in, name=_clean(trade_in.name) or "", value=value)

    return replace(
        p,
        customer_name=customer,
        customer_surname=(p.customer_surname or "").strip(),
        customer_phone=(p.customer_phone or "").strip(),
        product_name=product_name,
        product_name_only=name_only,
        product_memory=memory,
        product_color=color,
        selling_price=to_decimal(p.selling_price),
        total_cost_brl=to_decimal(p.total_cost_brl),
        trade_in=trade_in,
    )


class SimulacaoService:
    """Proposal store: propostas salvas e seu ciclo de vida."""

    def __init__(
        self,
        simulacoes: SimulacaoRepo,
        produtos: ProdutoRepo,
        transacoes: TransacaoRepo,
        expiration_days: int,
        feed: Optional[ChangeFeed] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.simulacoes = simulacoes
        self.produtos = produtos
        self.transacoes = transacoes
        self.expiration_days = expiration_days
        self.feed = feed
        self.clock = clock
        if feed is not None:
            feed.register(SIMULACOES, self.simulacoes.list_all)

    @property
    def db_path(self) -> str:
        return self.simulacoes.db_path

    def is_expired(self, proposal: Proposal) -> bool:
        return proposal_expired(proposal, self.expiration_days, self.clock())

    def _require(self, id_: str, conn=None) -> Proposal:
        p = self.simulacoes.get(id_, conn)
        if p is None:
            raise NotFoundError("Simulação", id_)
        return p

    def _require_actionable(self, p: Proposal, action: str) -> None:
        if p.status is ProposalStatus.SOLD:
            raise IllegalStateError(f"Proposta {p.id} já foi vendida; {action} não permitido", rule="sold_is_final")
        if self.is_expired(p):
            raise IllegalStateError(
                f"Proposta {p.id} expirada (validade de {self.expiration_days} dias); {action} não permitido",
                rule="proposal_expired",
            )

    def save(self, proposal: Proposal) -> Proposal:
        """Insere (sem id) ou atualiza (com id) uma proposta."""
        prepared = prepare_proposal(proposal)
        with UnitOfWork(self.db_path, self.feed) as uow:
            if not prepared.id:
                saved = replace(
                    prepared,
                    id=str(uuid.uuid4()),
                    created_at=prepared.created_at if prepared.created_at is not None else self.clock(),
                    status=ProposalStatus.DRAFT,
                    sold_at=None,
                )
                self.simulacoes.insert(saved, uow.conn)
                action = "save"
            else:
                current = self._require(prepared.id, uow.conn)
                self._require_actionable(current, "edição")
                saved = replace(
                    prepared,
                    created_at=current.created_at,
                    status=current.status,
                    sold_at=current.sold_at,
                    product_id=current.product_id if current.status is ProposalStatus.ORDERED else prepared.product_id,
                )
                self.simulacoes.update(saved, uow.conn)
                action = "update"
            uow.touch(SIMULACOES)
        log_venda(action, saved.id, cliente=saved.customer_full_name, preco=str(saved.selling_price))
        return saved

    def delete(self, id_: str) -> None:
        with UnitOfWork(self.db_path, self.feed) as uow:
            if self.simulacoes.delete(id_, uow.conn) == 0:
                raise NotFoundError("Simulação", id_)
            uow.touch(SIMULACOES)
        log_venda("delete", id_)

    def list(self) -> List[Proposal]:
        return self.simulacoes.list_all()

    def find_by_id(self, id_: str) -> Optional[Proposal]:
        return self.simulacoes.get(id_)

    def mark_ordered(self, id_: str, product_id: str) -> Proposal:
        """Marca a proposta como encomendada, guardando o item criado."""
        with UnitOfWork(self.db_path, self.feed) as uow:
            current = self._require(id_, uow.conn)
            self._require_actionable(current, "encomenda")
            if self.produtos.get(product_id, uow.conn) is None:
                raise NotFoundError("Produto", product_id)
            self.simulacoes.mark_ordered(id_, product_id, uow.conn)
            uow.touch(SIMULACOES)
        log_venda("ordered", id_, product_id=product_id)
        return replace(current, status=ProposalStatus.ORDERED, product_id=product_id)

    def open_for_edit(self, id_: str) -> Proposal:
        """Abre uma proposta para edição.

        Propostas válidas são devolvidas como estão. Propostas expiradas
        (ou já vendidas) não são alteradas: um novo rascunho é gravado com
        id novo, ``created_at = now`` e status limpo, e é ele que retorna.
        """
        with UnitOfWork(self.db_path, self.feed) as uow:
            current = self._require(id_, uow.conn)
            if current.status is not ProposalStatus.SOLD and not self.is_expired(current):
                return current
            draft = replace(
                current,
                id=str(uuid.uuid4()),
                created_at=self.clock(),
                status=ProposalStatus.DRAFT,
                sold_at=None,
            )
            self.simulacoes.insert(draft, uow.conn)
            uow.touch(SIMULACOES)
        log_venda("reopen", draft.id, origem=id_)
        return draft

    def promote_to_order(self, id_: str) -> ProductItem:
        """Transforma uma cotação manual em encomenda.

        Numa única transação: cria o item `ordered` reservado para o
        cliente, lança o STOCK_ENTRY da compra e marca a proposta como
        `ordered` com a referência ao item.
        """
        try:
            with UnitOfWork(self.db_path, self.feed) as uow:
                current = self._require(id_, uow.conn)
                self._require_actionable(current, "encomenda")
                if current.status is ProposalStatus.ORDERED:
                    raise IllegalStateError(f"Proposta {id_} já foi encomendada", rule="already_ordered")
                if current.mode is not ProposalOrigin.SIMULATION:
                    raise IllegalStateError(
                        "Somente cotações manuais podem virar encomenda", rule="order_requires_manual_quote"
                    )
                customer = current.customer_full_name
                item = prepare_item(
                    ProductItem(
                        name=current.product_name_only or current.product_name,
                        memory=current.product_memory or "",
                        color=current.product_color or "",
                        cost_usd=current.cost_usd,
                        fee_usd=current.fee_usd,
                        exchange_rate=current.exchange_rate,
                        spread=current.spread if current.spread is not None else ZERO,
                        import_tax_brl=current.import_tax_brl if current.import_tax_brl is not None else ZERO,
                        observation=reservation_note(customer),
                        status=ProductStatus.ORDERED,
                    )
                )
                now = self.clock()
                item = replace(item, id=str(uuid.uuid4()), created_at=now)
                entry = stock_entry_for(item, now, f"Encomenda: {item.descricao} (Reserva {customer})")
                self.produtos.insert(item, uow.conn)
                self.transacoes.insert(entry, uow.conn)
                self.simulacoes.mark_ordered(id_, item.id, uow.conn)
                uow.touch(PRODUTOS, TRANSACOES, SIMULACOES)
        except Exception as e:
            log_transaction("encomenda", {"simulacao_id": id_}, error=str(e))
            raise
        log_venda("ordered", id_, product_id=item.id, total_cost_brl=str(item.total_cost_brl))
        log_transaction("encomenda", {"simulacao_id": id_}, result={"product_id": item.id})
        return item

    def subscribe(self, callback) -> Callable[[], None]:
        if self.feed is None:
            raise RuntimeError("SimulacaoService criado sem ChangeFeed")
        return self.feed.subscribe(SIMULACOES, callback)
