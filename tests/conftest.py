from decimal import Decimal

import pytest

from revenda.domain.errors import PersistenceError
from revenda.domain.models import ProductItem
from revenda.usecases.calcular import orcamento_do_estoque, orcamento_manual, proposta_de
from revenda.usecases.contexto import criar_contexto

DAY_MS = 86_400_000


class FakeClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "revenda_test.sqlite")


@pytest.fixture
def ctx(db_path, clock):
    return criar_contexto(db_path, expiration_days=7, clock=clock)


def novo_iphone(**kw):
    base = dict(
        name="iPhone 15",
        memory="128GB",
        color="Preto",
        cost_usd=Decimal("900"),
        fee_usd=Decimal("20"),
        exchange_rate=Decimal("5.20"),
        spread=Decimal("0.10"),
        import_tax_brl=Decimal("50"),
    )
    base.update(kw)
    return ProductItem(**base)


def proposta_estoque(ctx, item, trade_in=None, customer="Ana", surname="Lima", margin=20):
    orc = orcamento_do_estoque(
        item, margin_percent=margin, trade_in_value=trade_in.value if trade_in else 0
    )
    return ctx.simulacoes.save(proposta_de(orc, customer, surname, "11999990000", trade_in))


def proposta_manual(ctx, customer="Ana", surname="Lima", margin=20, trade_in=None):
    orc = orcamento_manual(
        900, 20, "5.20", "0.10", 50,
        margin_percent=margin,
        trade_in_value=trade_in.value if trade_in else 0,
        name="iPhone 15", memory="128GB", color="Preto",
    )
    return ctx.simulacoes.save(proposta_de(orc, customer, surname, "", trade_in))


def snapshot(ctx):
    return (ctx.simulacoes.list(), ctx.estoque.list(), ctx.caixa.list())


def fail_on(monkeypatch, repo, method, nth=1):
    """Faz a n-ésima chamada de `repo.method` levantar PersistenceError."""
    original = getattr(repo, method)
    calls = {"n": 0}

    def wrapper(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == nth:
            raise PersistenceError(f"falha injetada em {method}")
        return original(*args, **kwargs)

    monkeypatch.setattr(repo, method, wrapper)
