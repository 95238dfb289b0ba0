"""Parser de argumentos da linha de comando.

Docstrings e mensagens em português.

Subcomandos:
- ``log LEVEL MESSAGE [k=v ...]`` anexa uma linha
- ``list`` lista os ficheiros de log
- ``purge`` força a limpeza por retenção
- ``export --since SEGUNDOS [--until EPOCH]`` exporta um archive ZIP
- ``export-encrypted --since SEGUNDOS --password SENHA`` exporta cifrado

Opções globais sobrescrevem variáveis ``LOCALLOG_*`` e o arquivo ``.env``.
"""

import argparse
from typing import Sequence

from .levels import LogLevel, parse_level

# ========================
# 0. Configuração do parser e argumentos padrão
# ========================


def _add_interval_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--since",
        type=float,
        default=24 * 3600,
        help="Janela em segundos até --until (padrão: 86400)",
    )
    sub.add_argument(
        "--until",
        type=float,
        default=None,
        help="Fim do intervalo em epoch segundos (padrão: agora)",
    )


# Função principal do módulo; cria e retorna o ArgumentParser configurado
def configure_argparser() -> argparse.ArgumentParser:
    """Cria e retorna ArgumentParser configurado para o logger local."""
    parser = argparse.ArgumentParser(
        prog="locallog",
        description="Logger local: ficheiros rotativos, retenção e exportação de archives",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Aumenta a verbosidade (-v, -vv)")
    parser.add_argument(
        "--log-root",
        dest="log_root",
        type=str,
        default=None,
        help="Diretório dos ficheiros de log (substitui LOCALLOG_LOG_ROOT)",
    )
    parser.add_argument(
        "--prefix",
        dest="prefix",
        type=str,
        default=None,
        help="Prefixo dos ficheiros (substitui LOCALLOG_FILE_PREFIX)",
    )
    parser.add_argument(
        "--export-dir",
        dest="export_dir",
        type=str,
        default=None,
        help="Diretório de saída das exportações (substitui LOCALLOG_EXPORT_DIR)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str,
        default=None,
        help="Nível do logging interno (DEBUG/INFO/WARNING/ERROR). Se ausente, definido por -v",
    )

    subs = parser.add_subparsers(dest="command", required=True)

    p_log = subs.add_parser("log", help="Anexa uma linha de log")
    p_log.add_argument("level", type=str, help=f"Um de: {', '.join(lvl.name.lower() for lvl in LogLevel)}")
    p_log.add_argument("message", type=str)
    p_log.add_argument("metadata", nargs="*", default=[], help="Pares chave=valor")

    subs.add_parser("list", help="Lista os ficheiros de log")
    subs.add_parser("purge", help="Remove ficheiros fora da retenção")

    p_export = subs.add_parser("export", help="Exporta um archive ZIP")
    _add_interval_args(p_export)

    p_enc = subs.add_parser("export-encrypted", help="Exporta um archive cifrado por senha")
    _add_interval_args(p_enc)
    p_enc.add_argument("--password", type=str, required=True)

    return parser


# ========================
# 1. Funções auxiliares para análise e validação de argumentos
# ========================


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Analisa argv e retorna Namespace validado."""
    parser = configure_argparser()
    ns = parser.parse_args(argv)
    try:
        validate_args(ns)
    except ValueError as exc:
        parser.error(str(exc))
    return ns


# Auxilia parse_args; criado para garantir valores corretos e seguros
def validate_args(args: argparse.Namespace) -> None:
    """Valida e normaliza argumentos; converte metadata em dict."""
    if getattr(args, "since", None) is not None and args.since < 0:
        raise ValueError("--since deve ser >= 0")
    if getattr(args, "level", None) is not None:
        args.level = parse_level(args.level)
    raw_meta = getattr(args, "metadata", None)
    if raw_meta is not None:
        meta = {}
        for item in raw_meta:
            key, sep, val = item.partition("=")
            if not sep or not key:
                raise ValueError(f"metadata deve ser chave=valor: {item!r}")
            meta[key] = val
        args.metadata = meta


# ========================
# 2. Função auxiliar para configuração de logging
# ========================


def get_log_config(args: argparse.Namespace) -> dict:
    """Retorna dict com configuração do logging interno ('level')."""
    if getattr(args, "log_level", None):
        level = str(args.log_level).upper()
    else:
        v = getattr(args, "verbose", 0) or 0
        if v >= 2:
            level = "DEBUG"
        elif v == 1:
            level = "INFO"
        else:
            level = "WARNING"
    return {"level": level}
