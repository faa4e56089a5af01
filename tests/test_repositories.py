from decimal import Decimal

import pytest

from conftest import novo_iphone
from revenda.config import DEFAULTS
from revenda.domain.errors import PersistenceError
from revenda.domain.models import InstallmentRule, ProductStatus, Transaction, TransactionKind
from revenda.infra.db import UnitOfWork, connect
from revenda.infra.migrations import apply_migrations
from revenda.infra.repositories import (
    ParamsRepo,
    ProdutoRepo,
    TransacaoRepo,
    format_installment_rules,
    parse_installment_rules,
)
from revenda.infra.subscriptions import TRANSACOES, ChangeFeed


@pytest.fixture
def migrated(db_path):
    apply_migrations(db_path)
    return db_path


def test_migracoes_idempotentes(migrated):
    apply_migrations(migrated)
    with connect(migrated) as c:
        assert c.execute("PRAGMA user_version;").fetchone()[0] == 2
        tables = {r[0] for r in c.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"params", "produto", "simulacao", "transacao"} <= tables


def test_parametros_com_fallback(migrated):
    repo = ParamsRepo(migrated)
    s = repo.settings()
    assert s.expiration_days == DEFAULTS.expiration_days
    assert s.default_spread == Decimal("0.10")
    assert len(s.installment_rules) == 12

    repo.set_many([("expiration_days", "3"), ("default_spread", "0.25"), ("installment_rules", "3:4.5;1:0")])
    s = repo.settings()
    assert s.expiration_days == 3
    assert s.default_spread == Decimal("0.25")
    assert s.installment_rules == (InstallmentRule(1, Decimal("0")), InstallmentRule(3, Decimal("4.5")))

    repo.set_many([("expiration_days", "abc")])
    assert repo.settings().expiration_days == DEFAULTS.expiration_days


def test_regras_de_parcelamento_texto():
    rules = parse_installment_rules(" 2:1.5 ; 1:0 ;")
    assert [r.installments for r in rules] == [1, 2]
    assert format_installment_rules((r.installments, r.rate) for r in rules) == "1:0;2:1.5"
    assert parse_installment_rules("") == []


def test_valores_monetarios_preservam_precisao(migrated):
    repo = ProdutoRepo(migrated)
    item = novo_iphone(id="p1", total_cost_brl=Decimal("4926.000"), created_at=1, status=ProductStatus.ORDERED)
    repo.insert(item)
    back = repo.get("p1")
    assert back.exchange_rate == Decimal("5.20")
    assert back.total_cost_brl == Decimal("4926.000")
    assert back.status is ProductStatus.ORDERED
    assert repo.list_by_status(ProductStatus.IN_STOCK) == []


def test_unit_of_work_desfaz_tudo_e_nao_notifica(migrated):
    transacoes = TransacaoRepo(migrated)
    feed = ChangeFeed()
    feed.register(TRANSACOES, transacoes.list_all)
    seen = []
    feed.subscribe(TRANSACOES, seen.append)
    tx = Transaction(kind=TransactionKind.SALE, description="x", amount=Decimal("1"),
                     cost=Decimal("0"), date=1, id="t1")

    with pytest.raises(PersistenceError):
        with UnitOfWork(migrated, feed) as uow:
            transacoes.insert(tx, conn=uow.conn)
            uow.touch(TRANSACOES)
            transacoes.insert(tx, conn=uow.conn)  # id duplicado

    assert transacoes.list_all() == []
    assert len(seen) == 1

    with UnitOfWork(migrated, feed) as uow:
        transacoes.insert(tx, conn=uow.conn)
        uow.touch(TRANSACOES)
    assert [t.id for t in seen[-1]] == ["t1"]


def test_status_nulo_do_produto_lido_como_em_estoque(migrated):
    ProdutoRepo(migrated).insert(novo_iphone(id="p1", created_at=1))
    with connect(migrated) as c:
        c.execute("UPDATE produto SET status = NULL")
    assert ProdutoRepo(migrated).get("p1").status is ProductStatus.IN_STOCK
