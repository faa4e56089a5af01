# revenda/usecases/estoque.py
"""
UC: Estoque (itens novos, seminovos e encomendas).

- create(item)   -> valida, calcula custo, grava o item e o lançamento STOCK_ENTRY juntos
- update(item)   -> corrige dados do item (o caixa histórico não é alterado)
- delete(id)     -> remove só o item (lançamentos antigos permanecem)
- receive(id)    -> encomenda chegou: ordered -> in_stock, sem efeito financeiro
- list() / list_available() / find_by_id(id) / subscribe(callback)

Obs.:
- Para itens novos a taxa de câmbio é obrigatória (> 0); custo zero não tem sentido.
- Seminovos têm os campos de custo zerados e `total_cost_brl` informado à mão.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from revenda.domain.errors import IllegalStateError, NotFoundError, ValidationError
from revenda.domain.formulas import ZERO, compute_new_item_cost, to_decimal
from revenda.domain.models import ProductItem, ProductStatus, Transaction, TransactionKind
from revenda.domain.policies import available_for_sale, now_ms
from revenda.infra.db import UnitOfWork
from revenda.infra.logger import log_database_operation, log_estoque, log_system_event, log_transaction
from revenda.infra.repositories import ProdutoRepo, TransacaoRepo
from revenda.infra.subscriptions import PRODUTOS, TRANSACOES, ChangeFeed


def _required(value: Optional[str], field: str, label: str) -> str:
    s = (value or "").strip()
    if not s:
        raise ValidationError(f"{label} é obrigatório", field=field)
    return s


def _non_negative(value, field: str) -> Decimal:
    d = to_decimal(value if value is not None else ZERO)
    if d < 0:
        raise ValidationError(f"{field} não pode ser negativo", field=field)
    return d


def prepare_item(item: ProductItem) -> ProductItem:
    """Valida o item e devolve uma cópia com o custo total coerente.

    Novos: ``total_cost_brl = (cost_usd + fee_usd) * (exchange_rate + spread) + import_tax_brl``.
    Seminovos: campos de custo zerados, ``total_cost_brl`` é o valor de aquisição.
    """
    name = _required(item.name, "name", "Nome")
    memory = _required(item.memory, "memory", "Memória")
    color = _required(item.color, "color", "Cor")

    if item.is_used:
        if item.total_cost_brl is None:
            raise ValidationError("Valor de aquisição do seminovo é obrigatório", field="total_cost_brl")
        total = _non_negative(item.total_cost_brl, "total_cost_brl")
        battery = item.battery_health
        if battery is not None and not (0 <= int(battery) <= 100):
            raise ValidationError("Saúde da bateria deve estar entre 0 e 100", field="battery_health")
        return replace(
            item,
            name=name, memory=memory, color=color,
            cost_usd=ZERO, fee_usd=ZERO, exchange_rate=ZERO, spread=ZERO, import_tax_brl=ZERO,
            total_cost_brl=total,
            battery_health=int(battery) if battery is not None else None,
        )

    if item.battery_health is not None:
        raise ValidationError("Saúde da bateria só se aplica a seminovos", field="battery_health")
    rate = to_decimal(item.exchange_rate if item.exchange_rate is not None else ZERO)
    if rate <= 0:
        raise ValidationError("Taxa de câmbio deve ser maior que zero", field="exchange_rate")
    cost_usd = _non_negative(item.cost_usd, "cost_usd")
    fee_usd = _non_negative(item.fee_usd, "fee_usd")
    tax = _non_negative(item.import_tax_brl, "import_tax_brl")
    spread = to_decimal(item.spread if item.spread is not None else ZERO)
    return replace(
        item,
        name=name, memory=memory, color=color,
        cost_usd=cost_usd, fee_usd=fee_usd, exchange_rate=rate, spread=spread, import_tax_brl=tax,
        total_cost_brl=compute_new_item_cost(cost_usd, fee_usd, rate, spread, tax),
    )


def stock_entry_for(item: ProductItem, date: int, description: Optional[str] = None) -> Transaction:
    """Lançamento STOCK_ENTRY correspondente à entrada de `item`."""
    if description is None:
        prefix = "Encomenda" if item.status is ProductStatus.ORDERED else "Compra Estoque"
        description = f"{prefix}: {item.descricao}"
    return Transaction(
        id=str(uuid.uuid4()),
        kind=TransactionKind.STOCK_ENTRY,
        description=description,
        amount=item.total_cost_brl,
        date=date,
        related_id=item.id,
    )


class EstoqueService:
    """Inventory store: itens de estoque e seus efeitos no caixa."""

    def __init__(
        self,
        produtos: ProdutoRepo,
        transacoes: TransacaoRepo,
        feed: Optional[ChangeFeed] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.produtos = produtos
        self.transacoes = transacoes
        self.feed = feed
        self.clock = clock
        if feed is not None:
            feed.register(PRODUTOS, self.produtos.list_all)

    @property
    def db_path(self) -> str:
        return self.produtos.db_path

    def new_item(self, item: ProductItem) -> ProductItem:
        """Valida e carimba id/created_at, sem gravar."""
        prepared = prepare_item(item)
        return replace(
            prepared,
            id=prepared.id or str(uuid.uuid4()),
            created_at=prepared.created_at if prepared.created_at is not None else self.clock(),
        )

    def create(self, item: ProductItem, description: Optional[str] = None) -> ProductItem:
        """Grava o item e o STOCK_ENTRY de `total_cost_brl` na mesma transação."""
        new = self.new_item(item)
        entry = stock_entry_for(new, self.clock(), description)
        try:
            with UnitOfWork(self.db_path, self.feed) as uow:
                self.produtos.insert(new, uow.conn)
                self.transacoes.insert(entry, uow.conn)
                uow.touch(PRODUTOS, TRANSACOES)
        except Exception as e:
            log_transaction("cadastro_produto", {"descricao": new.descricao}, error=str(e))
            raise
        log_database_operation("produto", "INSERT", 1, id=new.id)
        log_estoque("create", new.id, new.descricao, total_cost_brl=str(new.total_cost_brl), status=new.status.value)
        log_transaction("cadastro_produto", {"id": new.id}, result={"stock_entry": entry.id})
        return new

    def create_many(self, items: Iterable[ProductItem], description: Optional[str] = None) -> List[ProductItem]:
        """Cadastra vários itens; todos são validados antes e gravados juntos."""
        prepared = [self.new_item(it) for it in items]
        if not prepared:
            return []
        now = self.clock()
        with UnitOfWork(self.db_path, self.feed) as uow:
            for it in prepared:
                self.produtos.insert(it, uow.conn)
                self.transacoes.insert(stock_entry_for(it, now, description), uow.conn)
            uow.touch(PRODUTOS, TRANSACOES)
        log_database_operation("produto", "INSERT_MANY", len(prepared))
        return prepared

    def update(self, item: ProductItem) -> ProductItem:
        """Atualiza dados do item.

        Não altera lançamentos já gravados: correções de custo não são
        refletidas retroativamente no caixa. Status e data de criação
        são preservados (a transição de status é feita por `receive`).
        """
        if not item.id:
            raise ValidationError("Item sem id não pode ser atualizado", field="id")
        with UnitOfWork(self.db_path, self.feed) as uow:
            current = self.produtos.get(item.id, uow.conn)
            if current is None:
                raise NotFoundError("Produto", item.id)
            updated = replace(prepare_item(item), status=current.status, created_at=current.created_at)
            self.produtos.update(updated, uow.conn)
            uow.touch(PRODUTOS)
        log_estoque("update", updated.id, updated.descricao, total_cost_brl=str(updated.total_cost_brl))
        return updated

    def delete(self, id_: str) -> None:
        with UnitOfWork(self.db_path, self.feed) as uow:
            if self.produtos.delete(id_, uow.conn) == 0:
                raise NotFoundError("Produto", id_)
            uow.touch(PRODUTOS)
        log_estoque("delete", id_, "")

    def receive(self, id_: str) -> ProductItem:
        """Dá entrada física numa encomenda (ordered -> in_stock)."""
        with UnitOfWork(self.db_path, self.feed) as uow:
            current = self.produtos.get(id_, uow.conn)
            if current is None:
                raise NotFoundError("Produto", id_)
            if current.status is not ProductStatus.ORDERED:
                raise IllegalStateError(
                    f"Item {id_} não é uma encomenda pendente (status={current.status.value})",
                    rule="receive_requires_ordered",
                )
            self.produtos.set_status(id_, ProductStatus.IN_STOCK, uow.conn)
            uow.touch(PRODUTOS)
        log_estoque("receive", id_, current.descricao)
        log_system_event("encomenda_recebida", {"id": id_})
        return replace(current, status=ProductStatus.IN_STOCK)

    def list(self) -> List[ProductItem]:
        return self.produtos.list_all()

    def list_available(self) -> List[ProductItem]:
        """Itens que podem ser oferecidos (em estoque e sem reserva)."""
        return available_for_sale(self.produtos.list_all())

    def find_by_id(self, id_: str) -> Optional[ProductItem]:
        return self.produtos.get(id_)

    def subscribe(self, callback) -> Callable[[], None]:
        if self.feed is None:
            raise RuntimeError("EstoqueService criado sem ChangeFeed")
        return self.feed.subscribe(PRODUTOS, callback)
