# revenda/infra/logger.py
"""
Sistema de logging para as operações da revenda.

Este módulo configura e fornece loggers para registrar todas as operações
críticas do sistema: cadastro de estoque, vendas, lançamentos de caixa e
operações no banco de dados.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional


# Flags globais para habilitar/desabilitar logging e prints/output
ENABLE_LOGGING = os.environ.get("REVENDA_LOGGING", "0") == "1"
ENABLE_OUTPUT = os.environ.get("REVENDA_OUTPUT", "0") == "1"

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado na primeira escrita
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs (na pasta do pacote, ou REVENDA_LOGS_DIR)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("REVENDA_LOGS_DIR", BASE_DIR / "logs"))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "estoque": LOGS_DIR / "estoque.log",
    "vendas": LOGS_DIR / "vendas.log",
    "caixa": LOGS_DIR / "caixa.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('revenda.transactions', str(LOG_FILES["transactions"]))
estoque_logger = setup_logger('revenda.estoque', str(LOG_FILES["estoque"]))
venda_logger = setup_logger('revenda.vendas', str(LOG_FILES["vendas"]))
caixa_logger = setup_logger('revenda.caixa', str(LOG_FILES["caixa"]))
database_logger = setup_logger('revenda.database', str(LOG_FILES["database"]))
system_logger = setup_logger('revenda.system', str(LOG_FILES["system"]))


def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma operação completa (sucesso ou falha) no log.

    Args:
        operation: Tipo de operação (cadastro_produto, venda, ...)
        data: Dados da operação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_estoque(action: str, product_id: Optional[str], descricao: str, **kwargs) -> None:
    """
    Log específico para movimentações de estoque.

    Args:
        action: Ação realizada (create, update, delete, receive)
        product_id: Id do item
        descricao: Nome/memória/cor do item
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "product_id": product_id, "descricao": descricao, **kwargs}
    estoque_logger.info(f"ESTOQUE_{action.upper()}: {log_data}")

def log_venda(action: str, simulacao_id: Optional[str], **kwargs) -> None:
    """Log específico para vendas e mudanças de estado das propostas."""
    if not _enabled():
        return
    log_data = {"action": action, "simulacao_id": simulacao_id, **kwargs}
    venda_logger.info(f"VENDA_{action.upper()}: {log_data}")

def log_caixa(action: str, kind: str, amount: Any, **kwargs) -> None:
    """Log específico para lançamentos do caixa."""
    if not _enabled():
        return
    log_data = {"action": action, "kind": kind, "amount": str(amount), **kwargs}
    caixa_logger.info(f"CAIXA_{action.upper()}: {log_data}")

def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {"event": event, "details": details or {}}
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação/exportação).

    Args:
        operation: Tipo de operação (import, export)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, estoque, vendas, caixa, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string (None com o logging desabilitado)
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"
