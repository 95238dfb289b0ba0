"""Ponto de entrada da linha de comando do logger local.

Realiza o parsing de argumentos, configura o logging interno, monta a
configuração (.env + ambiente + CLI) e despacha o subcomando.
"""

import logging as _logging
import sys

from .config.settings import load_config
from .core.args import get_log_config, parse_args
from .core.errors import LocalLogError
from .core.logger import LocalLogger
from .system.selection import DateInterval


def _build_interval(args) -> DateInterval:
    if args.until is not None:
        end = float(args.until)
        return DateInterval.from_timestamps(end - float(args.since), end)
    return DateInterval.last(float(args.since))


def main(argv: list[str] | None = None) -> int:
    """Executa um subcomando e retorna o código de saída.

    0 em sucesso, 1 para erros do logger (ex.: nada a exportar). Erros de uso
    terminam com código 2 via argparse.
    """
    args = parse_args(argv)
    log_conf = get_log_config(args)
    level = getattr(_logging, log_conf.get("level", "WARNING"), _logging.WARNING)
    _logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = load_config(
        logs_directory=args.log_root,
        file_prefix=args.prefix,
        export_directory=args.export_dir,
    )
    with LocalLogger(config) as log:
        try:
            if args.command == "log":
                log.log(args.level, args.message, args.metadata)
                log.flush()
            elif args.command == "list":
                for p in sorted(log.list_log_files()):
                    print(p)
            elif args.command == "purge":
                removed = log.purge_expired_logs()
                print(f"{removed} ficheiro(s) removido(s)")
            elif args.command == "export":
                print(log.export_logs(_build_interval(args)))
            elif args.command == "export-encrypted":
                print(log.export_encrypted_logs(_build_interval(args), args.password))
        except LocalLogError as exc:
            _logging.getLogger(__name__).debug("comando %s falhou", args.command, exc_info=True)
            print(f"erro: {exc}", file=sys.stderr)
            return 1
    return 0
