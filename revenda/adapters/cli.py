# revenda/adapters/cli.py
"""
CLI da revenda (Typer).

Comandos principais:
- migrate                         -> aplica migrações
- params set/get/show/parcelas    -> gerencia parâmetros globais
- estoque add/list/receber/remover/importar
- calcular                        -> orçamento (estoque ou cotação manual)
- simulacao salvar/listar/encomendar/abrir/remover
- vender <simulacao_id>           -> registra a venda (tudo ou nada)
- caixa listar/resumo/remover/limpar/exportar
- cotacao                         -> cotação USD-BRL atual
"""

from __future__ import annotations

import functools
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from revenda.adapters.cotacao import fetch_current_exchange_rate
from revenda.adapters.exportar import default_filename, export_ledger_csv, tipo_label
from revenda.adapters.mensagem import DEFAULT_TEMPLATE, apply_template, format_brl, message_variables, whatsapp_link
from revenda.adapters.parsers import parse_decimal
from revenda.config import DB_PATH, DEFAULTS
from revenda.domain.errors import IllegalStateError, NotFoundError, RevendaError, ValidationError
from revenda.domain.formulas import round_brl
from revenda.domain.models import ProductItem, ProductStatus, ProposalStatus, TradeIn, TransactionKind
from revenda.infra.migrations import apply_migrations
from revenda.infra.repositories import ParamsRepo, format_installment_rules, parse_installment_rules
from revenda.usecases.calcular import Orcamento, orcamento_do_estoque, orcamento_manual, proposta_de
from revenda.usecases.contexto import Contexto, criar_contexto
from revenda.usecases.importar_estoque import run_importacao


app = typer.Typer(help="Revenda de aparelhos: CLI")
console = Console()

DB_OPTION = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")


# -----------------------
# util
# -----------------------

def _handle_errors(fn):
    """Converte erros do domínio em mensagem vermelha e código de saída 1."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except IllegalStateError as e:
            console.print(f"[bold red]Operação não permitida:[/] {e}")
        except NotFoundError as e:
            console.print(f"[bold red]Não encontrado:[/] {e}")
        except ValidationError as e:
            campo = f" ({e.field})" if e.field else ""
            console.print(f"[bold red]Dados inválidos{campo}:[/] {e}")
        except RevendaError as e:
            console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)

    return wrapper


def _money(value: Optional[str], field: str) -> Optional[Decimal]:
    if value is None:
        return None
    d = parse_decimal(value)
    if d is None:
        raise ValidationError(f"valor inválido: {value!r}", field=field)
    return d


def _when(ms: Optional[int]) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%d/%m/%Y %H:%M")


def _selected(raw: Optional[str]) -> Optional[List[int]]:
    if not raw:
        return None
    try:
        return [int(x) for x in raw.replace(";", ",").split(",") if x.strip()]
    except ValueError as e:
        raise ValidationError(f"parcelas inválidas: {raw!r}", field="parcelas") from e


def _show_orcamento(orc: Orcamento, selected: Optional[List[int]] = None) -> None:
    table = Table(title=f"Orçamento: {orc.product_name}", box=box.ROUNDED)
    table.add_column("Campo")
    table.add_column("Valor", justify="right")
    table.add_row("Base (USD)", f"{round_brl(orc.base_usd):.2f}")
    table.add_row("Câmbio efetivo", f"{orc.effective_rate}")
    table.add_row("Custo total", format_brl(orc.total_cost_brl))
    table.add_row("Margem", f"{round_brl(orc.margin_percent):.2f}% ({format_brl(orc.margin_amount)})")
    table.add_row("Preço de venda", f"[bold]{format_brl(orc.selling_price)}[/]")
    if orc.trade_in_value > 0:
        table.add_row("Troca", f"- {format_brl(orc.trade_in_value)}")
    table.add_row("Valor a pagar", format_brl(orc.final_price_to_pay))
    cor = "green" if orc.profit >= 0 else "red"
    table.add_row("Lucro", f"[{cor}]{format_brl(orc.profit)}[/]")
    console.print(table)

    if orc.installments:
        parc = Table(title="Parcelamento", box=box.SIMPLE)
        parc.add_column("Parcelas", justify="right")
        parc.add_column("Acréscimo", justify="right")
        parc.add_column("Valor da parcela", justify="right")
        parc.add_column("Total", justify="right")
        for opt in orc.installments:
            if selected is not None and opt.installments not in selected:
                continue
            parc.add_row(
                f"{opt.installments}x", f"{opt.rate}%", format_brl(opt.installment_value), format_brl(opt.total)
            )
        console.print(parc)


def _build_orcamento(
    ctx: Contexto,
    produto_id: Optional[str],
    custo_usd: Optional[str],
    taxa: Optional[str],
    cambio: Optional[str],
    spread: Optional[str],
    imposto: Optional[str],
    margem: Optional[str],
    preco: Optional[str],
    troca_valor: Optional[str],
    nome: Optional[str],
    memoria: Optional[str],
    cor: Optional[str],
) -> Orcamento:
    rules = ctx.settings.installment_rules
    trade = _money(troca_valor, "trade_in_value") or Decimal("0")
    if produto_id:
        item = ctx.estoque.find_by_id(produto_id)
        if item is None:
            raise NotFoundError("Produto", produto_id)
        return orcamento_do_estoque(
            item,
            margin_percent=_money(margem, "margin_percent"),
            target_price=_money(preco, "target_price"),
            trade_in_value=trade,
            rules=rules,
        )
    if custo_usd is None or cambio is None:
        raise ValidationError("Informe --produto-id ou --custo-usd e --cambio", field="cost_usd")
    fee = _money(taxa, "fee_usd")
    sp = _money(spread, "spread")
    tax = _money(imposto, "import_tax_brl")
    return orcamento_manual(
        _money(custo_usd, "cost_usd"),
        ctx.settings.default_fee_usd if fee is None else fee,
        _money(cambio, "exchange_rate"),
        spread=ctx.settings.default_spread if sp is None else sp,
        import_tax_brl=ctx.settings.default_import_tax if tax is None else tax,
        margin_percent=_money(margem, "margin_percent"),
        target_price=_money(preco, "target_price"),
        trade_in_value=trade,
        rules=rules,
        name=nome,
        memory=memoria,
        color=cor,
    )


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = DB_OPTION):
    """Aplica migrações do schema."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


params_app = typer.Typer(help="Gerenciar parâmetros globais (validade, câmbio, parcelas).")
app.add_typer(params_app, name="params")


@params_app.command("set")
@_handle_errors
def cmd_params_set(
    expiration_days: Optional[int] = typer.Option(None, help="Validade das propostas em dias (ex.: 7)"),
    taxa: Optional[str] = typer.Option(None, help="Taxa padrão do fornecedor em USD"),
    spread: Optional[str] = typer.Option(None, help="Spread padrão sobre o câmbio (R$)"),
    imposto: Optional[str] = typer.Option(None, help="Imposto de importação padrão (R$)"),
    parcelas: Optional[str] = typer.Option(None, help="Regras de parcelamento, ex.: '1:0;2:1.5;3:3'"),
    template: Optional[str] = typer.Option(None, help="Modelo da mensagem de WhatsApp"),
    db_path: str = DB_OPTION,
):
    """Define parâmetros globais (apenas os informados são alterados)."""
    apply_migrations(db_path)
    items: List[tuple] = []
    if expiration_days is not None:
        items.append(("expiration_days", str(expiration_days)))
    if taxa is not None:
        items.append(("default_fee_usd", str(_money(taxa, "default_fee_usd"))))
    if spread is not None:
        items.append(("default_spread", str(_money(spread, "default_spread"))))
    if imposto is not None:
        items.append(("default_import_tax", str(_money(imposto, "default_import_tax"))))
    if parcelas is not None:
        try:
            rules = parse_installment_rules(parcelas)
        except (ValueError, ArithmeticError) as e:
            raise ValidationError(f"regras de parcelamento inválidas: {parcelas!r}", field="installment_rules") from e
        if not rules or any(r.installments <= 0 for r in rules):
            raise ValidationError("informe ao menos uma regra com parcelas > 0", field="installment_rules")
        items.append(("installment_rules", format_installment_rules((r.installments, r.rate) for r in rules)))
    if template is not None:
        items.append(("whatsapp_template", template))
    if not items:
        typer.echo("Nada a alterar. Informe pelo menos um parâmetro.")
        raise typer.Exit(code=1)
    ParamsRepo(db_path).set_many(items)
    typer.echo(">> Parâmetros atualizados.")


@params_app.command("get")
def cmd_params_get(
    chave: str = typer.Argument(..., help="Ex.: expiration_days | default_spread | installment_rules"),
    db_path: str = DB_OPTION,
):
    """Mostra um parâmetro específico."""
    apply_migrations(db_path)
    val = ParamsRepo(db_path).get(chave)
    typer.echo("(None)" if val is None else val)


@params_app.command("show")
def cmd_params_show(db_path: str = DB_OPTION):
    """Exibe os parâmetros efetivos (com fallback para defaults)."""
    apply_migrations(db_path)
    s = ParamsRepo(db_path).settings()
    table = Table(title="Parâmetros do Sistema")
    table.add_column("Parâmetro")
    table.add_column("Valor Atual")
    table.add_column("Valor Padrão")
    table.add_row("expiration_days", str(s.expiration_days), str(DEFAULTS.expiration_days))
    table.add_row("default_fee_usd", str(s.default_fee_usd), str(DEFAULTS.default_fee_usd))
    table.add_row("default_spread", str(s.default_spread), str(DEFAULTS.default_spread))
    table.add_row("default_import_tax", str(s.default_import_tax), str(DEFAULTS.default_import_tax))
    table.add_row(
        "installment_rules",
        format_installment_rules((r.installments, r.rate) for r in s.installment_rules),
        format_installment_rules(DEFAULTS.installment_rules),
    )
    console.print(table)
    console.print(f"[dim]Banco de dados: {db_path}[/dim]")


@params_app.command("parcelas")
def cmd_params_parcelas(db_path: str = DB_OPTION):
    """Lista as regras de parcelamento em uso."""
    apply_migrations(db_path)
    s = ParamsRepo(db_path).settings()
    table = Table(title="Regras de Parcelamento", box=box.ROUNDED)
    table.add_column("Parcelas", justify="right")
    table.add_column("Acréscimo (%)", justify="right")
    for r in s.installment_rules:
        table.add_row(f"{r.installments}x", str(r.rate))
    console.print(table)


# -----------------------
# estoque
# -----------------------

estoque_app = typer.Typer(help="Itens em estoque e encomendas.")
app.add_typer(estoque_app, name="estoque")


@estoque_app.command("add")
@_handle_errors
def cmd_estoque_add(
    nome: str = typer.Option(..., help="Modelo, ex.: iPhone 15"),
    memoria: str = typer.Option(..., help="Ex.: 128GB"),
    cor: str = typer.Option(..., help="Ex.: Preto"),
    custo_usd: Optional[str] = typer.Option(None, help="Valor do produto em USD"),
    taxa: Optional[str] = typer.Option(None, help="Taxa em USD (padrão: parâmetro)"),
    cambio: Optional[str] = typer.Option(None, help="Cotação USD-BRL"),
    spread: Optional[str] = typer.Option(None, help="Spread em R$ (padrão: parâmetro)"),
    imposto: Optional[str] = typer.Option(None, help="Imposto de importação em R$"),
    usado: bool = typer.Option(False, "--usado", help="Seminovo (custo informado em R$)"),
    custo_brl: Optional[str] = typer.Option(None, help="Valor de aquisição do seminovo em R$"),
    bateria: Optional[int] = typer.Option(None, help="Saúde da bateria (seminovos, 0-100)"),
    obs: Optional[str] = typer.Option(None, help="Observação livre"),
    encomenda: bool = typer.Option(False, "--encomenda", help="Item ainda não recebido"),
    descricao: Optional[str] = typer.Option(None, help="Descrição do lançamento no caixa"),
    db_path: str = DB_OPTION,
):
    """Cadastra um item e lança a compra no caixa."""
    ctx = criar_contexto(db_path)
    s = ctx.settings
    fee = _money(taxa, "fee_usd")
    sp = _money(spread, "spread")
    tax = _money(imposto, "import_tax_brl")
    item = ProductItem(
        name=nome,
        memory=memoria,
        color=cor,
        cost_usd=_money(custo_usd, "cost_usd") or Decimal("0"),
        fee_usd=s.default_fee_usd if fee is None else fee,
        exchange_rate=_money(cambio, "exchange_rate") or Decimal("0"),
        spread=s.default_spread if sp is None else sp,
        import_tax_brl=s.default_import_tax if tax is None else tax,
        total_cost_brl=_money(custo_brl, "total_cost_brl") if usado else Decimal("0"),
        is_used=usado,
        battery_health=bateria,
        observation=obs,
        status=ProductStatus.ORDERED if encomenda else ProductStatus.IN_STOCK,
    )
    new = ctx.estoque.create(item, description=descricao)
    console.print(
        Panel(
            f"{new.descricao}\nCusto total: {format_brl(new.total_cost_brl)}\nStatus: {new.status.value}",
            title=f"Item cadastrado ({new.id})",
            border_style="green",
        )
    )


@estoque_app.command("list")
def cmd_estoque_list(
    disponiveis: bool = typer.Option(False, "--disponiveis", help="Só itens livres para venda"),
    db_path: str = DB_OPTION,
):
    """Lista os itens (mais recentes primeiro)."""
    ctx = criar_contexto(db_path)
    items = ctx.estoque.list_available() if disponiveis else ctx.estoque.list()
    if not items:
        console.print(Panel("Nenhum item encontrado", title="Estoque", border_style="yellow"))
        return
    table = Table(title="Estoque", box=box.ROUNDED)
    for col in ("id", "Produto", "Tipo", "Custo", "Status", "Observação", "Cadastro"):
        table.add_column(col, justify="right" if col == "Custo" else "left")
    for it in items:
        status = "[yellow]encomenda[/]" if it.status is ProductStatus.ORDERED else "[green]em estoque[/]"
        tipo = f"seminovo ({it.battery_health}%)" if it.is_used and it.battery_health is not None else (
            "seminovo" if it.is_used else "novo"
        )
        table.add_row(
            it.id, it.descricao, tipo, format_brl(it.total_cost_brl), status, it.observation or "", _when(it.created_at)
        )
    console.print(table)


@estoque_app.command("receber")
@_handle_errors
def cmd_estoque_receber(id_: str = typer.Argument(..., metavar="ID"), db_path: str = DB_OPTION):
    """Dá entrada física numa encomenda."""
    item = criar_contexto(db_path).estoque.receive(id_)
    typer.echo(f">> Encomenda recebida: {item.descricao}")


@estoque_app.command("remover")
@_handle_errors
def cmd_estoque_remover(id_: str = typer.Argument(..., metavar="ID"), db_path: str = DB_OPTION):
    """Remove um item (o caixa não é alterado)."""
    criar_contexto(db_path).estoque.delete(id_)
    typer.echo(f">> Item removido: {id_}")


@estoque_app.command("importar")
@_handle_errors
def cmd_estoque_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX de ESTOQUE"),
    db_path: str = DB_OPTION,
):
    """Importa itens de uma planilha (tudo ou nada)."""
    ctx = criar_contexto(db_path)
    info = run_importacao(path, ctx.estoque, ctx.settings)
    console.print(
        Panel(
            f"Itens importados: {info['itens_importados']}\nCusto total: {format_brl(Decimal(info['custo_total']))}",
            title="Importação de Estoque",
        )
    )


# -----------------------
# calculadora
# -----------------------

@app.command("calcular")
@_handle_errors
def cmd_calcular(
    produto_id: Optional[str] = typer.Option(None, help="Item do estoque"),
    custo_usd: Optional[str] = typer.Option(None, help="Cotação manual: valor em USD"),
    taxa: Optional[str] = typer.Option(None, help="Cotação manual: taxa em USD"),
    cambio: Optional[str] = typer.Option(None, help="Cotação manual: câmbio USD-BRL"),
    spread: Optional[str] = typer.Option(None, help="Cotação manual: spread em R$"),
    imposto: Optional[str] = typer.Option(None, help="Cotação manual: imposto em R$"),
    nome: Optional[str] = typer.Option(None, help="Cotação manual: modelo"),
    memoria: Optional[str] = typer.Option(None, help="Cotação manual: memória"),
    cor: Optional[str] = typer.Option(None, help="Cotação manual: cor"),
    margem: Optional[str] = typer.Option(None, help="Margem em % (padrão 20)"),
    preco: Optional[str] = typer.Option(None, help="Preço-alvo (calcula a margem)"),
    troca_valor: Optional[str] = typer.Option(None, help="Valor do aparelho de troca"),
    troca_nome: Optional[str] = typer.Option(None, help="Aparelho de troca (para a mensagem)"),
    parcelas: Optional[str] = typer.Option(None, help="Parcelas a exibir, ex.: '1,10,12'"),
    mensagem: bool = typer.Option(False, "--mensagem", help="Gera o texto para WhatsApp"),
    db_path: str = DB_OPTION,
):
    """Calcula custo, preço, lucro e parcelamento."""
    ctx = criar_contexto(db_path)
    orc = _build_orcamento(
        ctx, produto_id, custo_usd, taxa, cambio, spread, imposto, margem, preco, troca_valor, nome, memoria, cor
    )
    selected = _selected(parcelas)
    _show_orcamento(orc, selected)
    if mensagem:
        template = ctx.params.get("whatsapp_template") or DEFAULT_TEMPLATE
        texto = apply_template(template, message_variables(orc, troca_nome, selected))
        console.print(Panel(texto, title="Mensagem", border_style="green"))
        typer.echo(whatsapp_link(texto))


# -----------------------
# simulações
# -----------------------

sim_app = typer.Typer(help="Propostas salvas para clientes.")
app.add_typer(sim_app, name="simulacao")


@sim_app.command("salvar")
@_handle_errors
def cmd_simulacao_salvar(
    cliente: str = typer.Option(..., help="Nome do cliente"),
    sobrenome: str = typer.Option("", help="Sobrenome do cliente"),
    telefone: str = typer.Option("", help="Telefone do cliente"),
    produto_id: Optional[str] = typer.Option(None, help="Item do estoque"),
    custo_usd: Optional[str] = typer.Option(None, help="Cotação manual: valor em USD"),
    taxa: Optional[str] = typer.Option(None, help="Cotação manual: taxa em USD"),
    cambio: Optional[str] = typer.Option(None, help="Cotação manual: câmbio USD-BRL"),
    spread: Optional[str] = typer.Option(None, help="Cotação manual: spread em R$"),
    imposto: Optional[str] = typer.Option(None, help="Cotação manual: imposto em R$"),
    nome: Optional[str] = typer.Option(None, help="Cotação manual: modelo"),
    memoria: Optional[str] = typer.Option(None, help="Cotação manual: memória"),
    cor: Optional[str] = typer.Option(None, help="Cotação manual: cor"),
    margem: Optional[str] = typer.Option(None, help="Margem em % (padrão 20)"),
    preco: Optional[str] = typer.Option(None, help="Preço-alvo (calcula a margem)"),
    troca_nome: Optional[str] = typer.Option(None, help="Aparelho recebido na troca"),
    troca_valor: Optional[str] = typer.Option(None, help="Valor do aparelho de troca"),
    troca_memoria: Optional[str] = typer.Option(None, help="Memória do aparelho de troca"),
    troca_cor: Optional[str] = typer.Option(None, help="Cor do aparelho de troca"),
    troca_bateria: Optional[int] = typer.Option(None, help="Bateria do aparelho de troca (0-100)"),
    db_path: str = DB_OPTION,
):
    """Calcula e grava uma proposta."""
    ctx = criar_contexto(db_path)
    orc = _build_orcamento(
        ctx, produto_id, custo_usd, taxa, cambio, spread, imposto, margem, preco, troca_valor, nome, memoria, cor
    )
    trade = None
    if troca_nome or orc.trade_in_value > 0:
        trade = TradeIn(
            name=troca_nome or "",
            value=orc.trade_in_value,
            memory=troca_memoria,
            color=troca_cor,
            battery=troca_bateria,
        )
    saved = ctx.simulacoes.save(proposta_de(orc, cliente, sobrenome, telefone, trade))
    _show_orcamento(orc)
    typer.echo(f">> Proposta salva: {saved.id}")


@sim_app.command("listar")
def cmd_simulacao_listar(db_path: str = DB_OPTION):
    """Lista as propostas (mais recentes primeiro)."""
    ctx = criar_contexto(db_path)
    props = ctx.simulacoes.list()
    if not props:
        console.print(Panel("Nenhuma proposta encontrada", title="Simulações", border_style="yellow"))
        return
    table = Table(title="Simulações", box=box.ROUNDED)
    for col in ("id", "Cliente", "Produto", "Preço", "Troca", "Status", "Criada em"):
        table.add_column(col, justify="right" if col in ("Preço", "Troca") else "left")
    for p in props:
        if p.status is ProposalStatus.SOLD:
            status = f"[blue]vendida {_when(p.sold_at)}[/]"
        elif ctx.simulacoes.is_expired(p):
            status = "[red]expirada[/]"
        elif p.status is ProposalStatus.ORDERED:
            status = "[yellow]encomendada[/]"
        else:
            status = "rascunho"
        table.add_row(
            p.id,
            p.customer_full_name,
            p.product_name,
            format_brl(p.selling_price),
            format_brl(p.trade_in_value) if p.trade_in else "",
            status,
            _when(p.created_at),
        )
    console.print(table)


@sim_app.command("encomendar")
@_handle_errors
def cmd_simulacao_encomendar(id_: str = typer.Argument(..., metavar="ID"), db_path: str = DB_OPTION):
    """Transforma uma cotação manual em encomenda reservada para o cliente."""
    item = criar_contexto(db_path).simulacoes.promote_to_order(id_)
    typer.echo(f">> Encomenda criada: {item.id} ({item.descricao}) - {format_brl(item.total_cost_brl)}")


@sim_app.command("abrir")
@_handle_errors
def cmd_simulacao_abrir(id_: str = typer.Argument(..., metavar="ID"), db_path: str = DB_OPTION):
    """Abre uma proposta para edição (expiradas geram um novo rascunho)."""
    p = criar_contexto(db_path).simulacoes.open_for_edit(id_)
    if p.id != id_:
        typer.echo(f">> Proposta expirada; novo rascunho criado: {p.id}")
    else:
        typer.echo(f">> Proposta {p.id} válida para edição")


@sim_app.command("remover")
@_handle_errors
def cmd_simulacao_remover(id_: str = typer.Argument(..., metavar="ID"), db_path: str = DB_OPTION):
    """Remove uma proposta."""
    criar_contexto(db_path).simulacoes.delete(id_)
    typer.echo(f">> Proposta removida: {id_}")


# -----------------------
# venda
# -----------------------

@app.command("vender")
@_handle_errors
def cmd_vender(simulacao_id: str = typer.Argument(...), db_path: str = DB_OPTION):
    """Registra a venda de uma proposta (proposta, estoque e caixa juntos)."""
    res = criar_contexto(db_path).vendas.vender(simulacao_id)
    linhas = [
        f"Cliente: {res.proposal.customer_full_name}",
        f"Produto: {res.proposal.product_name}",
        f"Valor recebido: {format_brl(res.sale.amount)}",
        f"Custo: {format_brl(res.sale.cost)}",
    ]
    if res.removed_product_id:
        linhas.append(f"Item baixado do estoque: {res.removed_product_id}")
    else:
        linhas.append("[yellow]Nenhum item reservado encontrado no estoque[/]")
    if res.trade_in_product is not None:
        linhas.append(f"Troca recebida: {res.trade_in_product.descricao} ({format_brl(res.trade_in_entry.amount)})")
    console.print(Panel("\n".join(linhas), title="Venda registrada", border_style="green"))


# -----------------------
# caixa
# -----------------------

caixa_app = typer.Typer(help="Lançamentos do caixa.")
app.add_typer(caixa_app, name="caixa")


@caixa_app.command("listar")
def cmd_caixa_listar(
    tipo: Optional[TransactionKind] = typer.Option(None, "--tipo", help="Filtra por tipo: STOCK_ENTRY, SALE, TRADE_IN_ENTRY"),
    db_path: str = DB_OPTION,
):
    """Lista os lançamentos (mais recentes primeiro)."""
    txs = criar_contexto(db_path).caixa.list(tipo)
    if not txs:
        console.print(Panel("Nenhum lançamento encontrado", title="Caixa", border_style="yellow"))
        return
    table = Table(title="Caixa", box=box.ROUNDED)
    for col in ("id", "Data", "Tipo", "Descrição", "Valor", "Custo"):
        table.add_column(col, justify="right" if col in ("Valor", "Custo") else "left")
    for t in txs:
        table.add_row(
            t.id, _when(t.date), tipo_label(t.kind), t.description,
            format_brl(t.amount), format_brl(t.cost) if t.cost is not None else "",
        )
    console.print(table)


@caixa_app.command("resumo")
def cmd_caixa_resumo(db_path: str = DB_OPTION):
    """Totais do caixa recalculados a partir dos lançamentos."""
    s = criar_contexto(db_path).caixa.summary()
    table = Table(title="Resumo do Caixa", box=box.ROUNDED)
    table.add_column("Indicador")
    table.add_column("Valor", justify="right")
    table.add_row("Entradas (vendas)", format_brl(s.cash_in))
    table.add_row("Saídas (compras)", format_brl(s.cash_out))
    table.add_row("Faturamento bruto", format_brl(s.gross_revenue))
    table.add_row("Investimento em estoque", format_brl(s.total_stock_investment))
    table.add_row("Lucro realizado", format_brl(s.realized_profit))
    table.add_row("Vendas", str(s.sales_count))
    console.print(table)


@caixa_app.command("remover")
@_handle_errors
def cmd_caixa_remover(id_: str = typer.Argument(..., metavar="ID"), db_path: str = DB_OPTION):
    """Remove um lançamento."""
    criar_contexto(db_path).caixa.delete(id_)
    typer.echo(f">> Lançamento removido: {id_}")


@caixa_app.command("limpar")
def cmd_caixa_limpar(
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = DB_OPTION,
):
    """Apaga TODOS os lançamentos (irreversível)."""
    if not yes:
        typer.confirm("Apagar todos os lançamentos do caixa? Esta ação não pode ser desfeita", abort=True)
    removidos = criar_contexto(db_path).caixa.clear_all()
    typer.echo(f">> {removidos} lançamentos removidos.")


@caixa_app.command("exportar")
def cmd_caixa_exportar(
    path: Optional[str] = typer.Argument(None, help="Arquivo CSV de destino"),
    db_path: str = DB_OPTION,
):
    """Exporta o caixa para CSV (separador ';', compatível com Excel)."""
    path = path or default_filename()
    n = export_ledger_csv(criar_contexto(db_path).caixa.list(), path)
    typer.echo(f">> {n} lançamentos exportados para {path}")


# -----------------------
# cotação
# -----------------------

@app.command("cotacao")
def cmd_cotacao():
    """Busca a cotação USD-BRL atual."""
    res = fetch_current_exchange_rate()
    if res is None:
        console.print("[bold red]Não foi possível obter a cotação.[/]")
        raise typer.Exit(code=1)
    console.print(f"USD-BRL: [bold]{res.rate}[/] ([dim]{res.source}[/dim])")


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
