# revenda/usecases/registrar_venda.py
"""
UC: Registrar VENDA de uma proposta.

- VendaService.vender(simulacao_id): executa a venda numa única transação
- run_venda(simulacao_id, db_path): atalho que monta os serviços e vende

Passos (tudo ou nada):
  1. marca a proposta como vendida (sold_at = agora)
  2. remove do estoque a unidade consumida
       - proposta de estoque: o item vinculado (product_id)
       - cotação manual: o primeiro item em estoque com mesmo nome/memória/cor
         reservado para o cliente (não achar nada é um resultado válido)
  3. lança SALE com amount = selling_price - valor da troca e cost = total_cost_brl
  4. havendo troca, cadastra o seminovo recebido e lança TRADE_IN_ENTRY

Obs.:
- Pré-condições violadas levantam IllegalStateError/ValidationError antes de
  qualquer escrita; falhas do banco levantam PersistenceError e desfazem tudo.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Callable, Optional

from revenda.config import DB_PATH
from revenda.domain.errors import IllegalStateError, NotFoundError, ValidationError
from revenda.domain.formulas import ZERO
from revenda.domain.models import (
    ProductItem,
    ProductStatus,
    Proposal,
    ProposalOrigin,
    ProposalStatus,
    Transaction,
    TransactionKind,
)
from revenda.domain.policies import find_reserved_match, now_ms, proposal_expired
from revenda.infra.db import UnitOfWork
from revenda.infra.logger import log_system_event, log_transaction, log_venda
from revenda.infra.repositories import ProdutoRepo, SimulacaoRepo, TransacaoRepo
from revenda.infra.subscriptions import PRODUTOS, SIMULACOES, TRANSACOES, ChangeFeed
from revenda.usecases.estoque import prepare_item

# memória/cor não informadas no aparelho da troca
SEM_INFO = "N/D"


@dataclass
class ResultadoVenda:
    proposal: Proposal
    sale: Transaction
    removed_product_id: Optional[str] = None
    trade_in_product: Optional[ProductItem] = None
    trade_in_entry: Optional[Transaction] = None


def trade_in_item(proposal: Proposal) -> Optional[ProductItem]:
    """Seminovo recebido na troca, já validado; None quando não há troca."""
    t = proposal.trade_in
    if t is None or proposal.trade_in_value <= 0:
        return None
    return prepare_item(
        ProductItem(
            name=t.name,
            memory=t.memory or SEM_INFO,
            color=t.color or SEM_INFO,
            is_used=True,
            total_cost_brl=t.value,
            battery_health=t.battery,
            observation=f"Troca de {proposal.customer_full_name}",
        )
    )


class VendaService:
    """Sale orchestrator: proposta + estoque + caixa numa unidade de trabalho."""

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

    @property
    def db_path(self) -> str:
        return self.simulacoes.db_path

    def _check(self, p: Proposal, now: int, conn) -> Optional[ProductItem]:
        """Valida as pré-condições e devolve o item vinculado, se houver."""
        if p.status is ProposalStatus.SOLD:
            raise IllegalStateError(f"Proposta {p.id} já foi vendida", rule="sold_is_final")
        if proposal_expired(p, self.expiration_days, now):
            raise IllegalStateError(
                f"Proposta {p.id} expirada (validade de {self.expiration_days} dias)",
                rule="proposal_expired",
            )
        linked = self.produtos.get(p.product_id, conn) if p.product_id else None
        if linked is not None and linked.status is ProductStatus.ORDERED:
            raise IllegalStateError(
                f"Item {linked.id} ainda é uma encomenda; registre o recebimento antes de vender",
                rule="ordered_item_not_received",
            )
        if p.selling_price <= 0:
            raise ValidationError("Preço de venda deve ser maior que zero", field="selling_price")
        if p.mode in (ProposalOrigin.FROM_STOCK, ProposalOrigin.FROM_USED_STOCK) and linked is None:
            raise NotFoundError("Produto", p.product_id or "-")
        return linked

    def vender(self, simulacao_id: str) -> ResultadoVenda:
        log_system_event("venda_start", {"simulacao_id": simulacao_id})
        try:
            with UnitOfWork(self.db_path, self.feed) as uow:
                proposal = self.simulacoes.get(simulacao_id, uow.conn)
                if proposal is None:
                    raise NotFoundError("Simulação", simulacao_id)
                now = self.clock()
                linked = self._check(proposal, now, uow.conn)
                trade_product = trade_in_item(proposal)

                # 1. proposta vendida
                self.simulacoes.mark_sold(proposal.id, now, uow.conn)

                # 2. unidade consumida
                if proposal.mode is ProposalOrigin.SIMULATION:
                    consumed = find_reserved_match(self.produtos.list_all(uow.conn), proposal)
                else:
                    consumed = linked
                removed_id = None
                if consumed is not None:
                    self.produtos.delete(consumed.id, uow.conn)
                    removed_id = consumed.id
                else:
                    log_venda("no_reserved_match", proposal.id, cliente=proposal.customer_full_name)

                # 3. lançamento da venda
                trade_value = proposal.trade_in_value
                sale = Transaction(
                    id=str(uuid.uuid4()),
                    kind=TransactionKind.SALE,
                    description=f"Venda: {proposal.product_name} - {proposal.customer_full_name}",
                    amount=proposal.selling_price - trade_value,
                    cost=proposal.total_cost_brl,
                    date=now,
                    related_id=proposal.id,
                    trade_in_value=trade_value if trade_value > ZERO else None,
                )
                self.transacoes.insert(sale, uow.conn)

                # 4. aparelho recebido na troca
                trade_entry = None
                if trade_product is not None:
                    trade_product = replace(trade_product, id=str(uuid.uuid4()), created_at=now)
                    self.produtos.insert(trade_product, uow.conn)
                    trade_entry = Transaction(
                        id=str(uuid.uuid4()),
                        kind=TransactionKind.TRADE_IN_ENTRY,
                        description=f"Entrada Troca: {trade_product.descricao}",
                        amount=trade_value,
                        date=now,
                        related_id=trade_product.id,
                    )
                    self.transacoes.insert(trade_entry, uow.conn)

                uow.touch(SIMULACOES, PRODUTOS, TRANSACOES)
        except Exception as e:
            log_transaction("venda", {"simulacao_id": simulacao_id}, error=str(e))
            log_system_event("venda_error", {"simulacao_id": simulacao_id, "error": str(e)}, level="error")
            raise

        sold = replace(proposal, status=ProposalStatus.SOLD, sold_at=now)
        log_venda(
            "sold", sold.id,
            amount=str(sale.amount), cost=str(sale.cost),
            removed_product_id=removed_id,
            trade_in=str(trade_value) if trade_entry else None,
        )
        log_transaction("venda", {"simulacao_id": simulacao_id}, result={"sale_id": sale.id})
        return ResultadoVenda(
            proposal=sold,
            sale=sale,
            removed_product_id=removed_id,
            trade_in_product=trade_product,
            trade_in_entry=trade_entry,
        )


def run_venda(simulacao_id: str, db_path: str = DB_PATH) -> ResultadoVenda:
    """Vende uma proposta usando os parâmetros gravados no banco."""
    from revenda.usecases.contexto import criar_contexto

    ctx = criar_contexto(db_path)
    return ctx.vendas.vender(simulacao_id)
