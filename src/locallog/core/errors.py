"""Taxonomia de erros do logger local.

Falhas no caminho de escrita (`log`) nunca chegam ao chamador; as
operações de exportação levantam as exceções abaixo.
"""


class LocalLogError(Exception):
    """Base para todas as falhas reportadas pelo logger local."""


class LogIOError(LocalLogError, OSError):
    """Falha de I/O ao criar, abrir, escrever, listar ou remover ficheiros."""


class EmptySelectionError(LocalLogError):
    """Nenhum ficheiro de log no intervalo pedido para exportação."""


class InvalidPasswordError(LocalLogError, ValueError):
    """Senha vazia fornecida para exportação cifrada."""


class UnsupportedFeatureError(LocalLogError):
    """Exportação cifrada indisponível nesta plataforma/instalação."""


class ArchiveLimitError(LocalLogError, ValueError):
    """Seleção excede os limites do formato ZIP (65535 entradas, 4 GiB)."""
