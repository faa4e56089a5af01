# revenda/usecases/importar_estoque.py
"""
UC: Importar ESTOQUE de uma planilha XLSX.

- row_to_item(rec, settings): converte uma linha do loader em ProductItem
- run_importacao(path, estoque, settings): valida todas as linhas e grava tudo junto

Obs.:
- Uma linha inválida aborta a importação inteira (nada é gravado) e o erro
  indica a linha da planilha (cabeçalho = linha 1).
- Spread e taxa ausentes usam os padrões configurados.
"""

from __future__ import annotations

from typing import Any, Dict, List

from revenda.adapters.gds_loader import load_produtos_from_xlsx
from revenda.adapters.parsers import parse_bool, parse_decimal, parse_int
from revenda.domain.errors import ValidationError
from revenda.domain.formulas import ZERO
from revenda.domain.models import ProductItem, ProductStatus, Settings
from revenda.infra.logger import log_file_operation, log_system_event, log_transaction, print_system
from revenda.usecases.estoque import EstoqueService, prepare_item


def _status(rec: Dict[str, Any]) -> ProductStatus:
    raw = (rec.get("status") or "").strip().lower()
    if raw in ("ordered", "encomenda", "encomendado"):
        return ProductStatus.ORDERED
    if parse_bool(rec.get("ordered")):
        return ProductStatus.ORDERED
    return ProductStatus.IN_STOCK


def row_to_item(rec: Dict[str, Any], settings: Settings) -> ProductItem:
    is_used = bool(parse_bool(rec.get("is_used")))
    spread = parse_decimal(rec.get("spread"))
    fee = parse_decimal(rec.get("fee_usd"))
    tax = parse_decimal(rec.get("import_tax_brl"))
    return ProductItem(
        name=rec.get("name") or "",
        memory=rec.get("memory") or "",
        color=rec.get("color") or "",
        cost_usd=parse_decimal(rec.get("cost_usd")) or ZERO,
        fee_usd=settings.default_fee_usd if fee is None else fee,
        exchange_rate=parse_decimal(rec.get("exchange_rate")) or ZERO,
        spread=settings.default_spread if spread is None else spread,
        import_tax_brl=settings.default_import_tax if tax is None else tax,
        total_cost_brl=parse_decimal(rec.get("total_cost_brl")) if is_used else ZERO,
        is_used=is_used,
        battery_health=parse_int(rec.get("battery_health")) if is_used else None,
        observation=rec.get("observation"),
        status=_status(rec),
    )


def run_importacao(path: str, estoque: EstoqueService, settings: Settings) -> Dict[str, Any]:
    """Lê o XLSX e cadastra todos os itens com seus STOCK_ENTRY numa só transação."""
    log_system_event("importacao_estoque_start", {"file_path": path})
    log_file_operation("import", path)
    try:
        rows = load_produtos_from_xlsx(path)
        log_file_operation("import", path, rows_processed=len(rows))

        items: List[ProductItem] = []
        for i, rec in enumerate(rows, start=2):
            try:
                items.append(prepare_item(row_to_item(rec, settings)))
            except ValidationError as e:
                raise ValidationError(f"linha {rec.get('linha', i)}: {e}", field=e.field) from e

        created = estoque.create_many(items, description=None)
        result = {
            "arquivo": path,
            "itens_importados": len(created),
            "custo_total": str(sum((it.total_cost_brl for it in created), ZERO)),
        }
        print_system(f">> {len(created)} itens importados de {path}")
        log_transaction("importacao_estoque", {"file": path, "rows_count": len(rows)}, result=result)
        log_system_event("importacao_estoque_success", result)
        return result
    except Exception as e:
        log_transaction("importacao_estoque", {"file": path}, error=str(e))
        log_system_event("importacao_estoque_error", {"file_path": path, "error": str(e)}, level="error")
        raise
