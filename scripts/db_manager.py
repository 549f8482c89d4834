#!/usr/bin/env python3
"""
Gerenciar o banco do PPD+ pela linha de comando.

Uso:
  python scripts/db_manager.py show [members|credits|payments|notifications|settings]
  python scripts/db_manager.py add-member --name "Joao Silva" --password segredo [--member]
  python scripts/db_manager.py add-credit --code PPD1A2B3C4D --amount 1000 [--approve]
  python scripts/db_manager.py add-transaction --code PPD1A2B3C4D --credit-id credit-... --amount 500 [--confirm]
  python scripts/db_manager.py clear | reset | stats
  python scripts/db_manager.py export backup.json
  python scripts/db_manager.py import backup.json

--data-file aponta para outro arquivo JSON (ignora STORAGE_BACKEND).
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path

# Garantir que o pacote ppd seja importavel quando rodado diretamente
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ppd.core.config import Settings, get_settings
from ppd.core.log import configure_logging
from ppd.domain.errors import PPDError
from ppd.repositories import open_store
from ppd.repositories.base import COLLECTIONS, RecordStore, StorageError
from ppd.services.credit_service import CreditService
from ppd.services.member_service import MemberService
from ppd.services.payment_service import PaymentService


def _settings(args) -> Settings:
    settings = get_settings()
    if args.data_file:
        settings = dataclasses.replace(settings, storage_backend="json", data_file=Path(args.data_file))
    return settings


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _admin_id(store: RecordStore, settings: Settings) -> str:
    admin = store.find_by("members", "consumer_code", settings.admin_consumer_code, active_only=True)
    if not admin or not admin.get("is_admin"):
        raise SystemExit(f"Administrador '{settings.admin_consumer_code}' nao encontrado")
    return admin["id"]


def _member_id(store: RecordStore, code: str) -> str:
    member = MemberService(store).get_by_consumer_code(code)
    return member["id"]


def cmd_show(store: RecordStore, settings: Settings, args) -> None:
    if args.collection:
        rows = store.all(args.collection)
        if args.collection == "members":
            rows = [{k: v for k, v in r.items() if k != "password_hash"} for r in rows]
        _print_json(rows)
        return
    data = store.dump()
    data["members"] = [{k: v for k, v in r.items() if k != "password_hash"} for r in data["members"]]
    _print_json(data)


def cmd_add_member(store: RecordStore, settings: Settings, args) -> None:
    member = MemberService(store, settings).register(
        name=args.name,
        password=args.password,
        email=args.email,
        phone=args.phone,
        document=args.document,
        consumer_code=args.code,
        is_member=args.member,
    )
    print("OK: membro criado")
    print(f"  Codigo de consumidor: {member['consumer_code']}")
    print(f"  ID: {member['id']}")


def cmd_add_credit(store: RecordStore, settings: Settings, args) -> None:
    service = CreditService(store, settings)
    member_id = _member_id(store, args.code)
    if args.approve:
        credit = service.create_approved_credit(_admin_id(store, settings), member_id, args.amount, args.description)
    else:
        credit = service.request_credit(member_id, args.amount, args.description)
    print("OK: credito adicionado")
    print(f"  ID do credito: {credit['id']}")
    print(f"  Status: {credit['status']}")
    print(f"  Total: {credit['total']:.2f} (juros {credit['interest']:.2f})")


def cmd_add_transaction(store: RecordStore, settings: Settings, args) -> None:
    service = PaymentService(store, settings)
    payment = service.register_payment(
        _member_id(store, args.code), args.credit_id, args.amount, args.method, args.description
    )
    if args.confirm:
        payment = service.confirm_payment(_admin_id(store, settings), payment["id"]).payment
    print("OK: transacao adicionada")
    print(f"  ID da transacao: {payment['id']}")
    print(f"  Status: {payment['status']}")


def cmd_clear(store: RecordStore, settings: Settings, args) -> None:
    store.clear()
    print("OK: banco de dados limpo")


def cmd_reset(store: RecordStore, settings: Settings, args) -> None:
    store.reset()
    print("OK: banco de dados resetado")


def cmd_export(store: RecordStore, settings: Settings, args) -> None:
    target = store.export_to(args.file)
    print(f"OK: dados exportados para {target}")


def cmd_import(store: RecordStore, settings: Settings, args) -> None:
    store.import_from(args.file)
    print(f"OK: dados importados de {args.file}")


def cmd_stats(store: RecordStore, settings: Settings, args) -> None:
    _print_json(store.stats())


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Gerenciar o banco de dados do PPD+")
    ap.add_argument("--data-file", help="Arquivo JSON do banco (default: DATA_FILE)")
    sub = ap.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Mostrar colecoes")
    show.add_argument("collection", nargs="?", choices=COLLECTIONS)
    show.set_defaults(func=cmd_show)

    member = sub.add_parser("add-member", help="Cadastrar membro")
    member.add_argument("--name", required=True)
    member.add_argument("--password", required=True)
    member.add_argument("--email")
    member.add_argument("--phone")
    member.add_argument("--document")
    member.add_argument("--code", help="Codigo de consumidor (default: gerado)")
    member.add_argument("--member", action="store_true", help="Marcar como membro associado")
    member.set_defaults(func=cmd_add_member)

    credit = sub.add_parser("add-credit", help="Adicionar credito")
    credit.add_argument("--code", required=True, help="Codigo de consumidor do membro")
    credit.add_argument("--amount", required=True)
    credit.add_argument("--description")
    credit.add_argument("--approve", action="store_true", help="Criar ja aprovado pelo administrador")
    credit.set_defaults(func=cmd_add_credit)

    tx = sub.add_parser("add-transaction", help="Registrar pagamento de credito")
    tx.add_argument("--code", required=True, help="Codigo de consumidor do membro")
    tx.add_argument("--credit-id", required=True)
    tx.add_argument("--amount", required=True)
    tx.add_argument("--method")
    tx.add_argument("--description")
    tx.add_argument("--confirm", action="store_true", help="Confirmar o pagamento em seguida")
    tx.set_defaults(func=cmd_add_transaction)

    sub.add_parser("clear", help="Esvaziar todas as colecoes").set_defaults(func=cmd_clear)
    sub.add_parser("reset", help="Recriar banco com dados iniciais").set_defaults(func=cmd_reset)
    sub.add_parser("stats", help="Estatisticas").set_defaults(func=cmd_stats)

    export = sub.add_parser("export", help="Exportar para arquivo JSON")
    export.add_argument("file")
    export.set_defaults(func=cmd_export)

    imp = sub.add_parser("import", help="Importar de arquivo JSON")
    imp.add_argument("file")
    imp.set_defaults(func=cmd_import)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings(args)
    configure_logging("WARNING")
    try:
        store = open_store(settings)
        args.func(store, settings, args)
    except (PPDError, StorageError) as exc:
        sys.stderr.write(f"Erro: {exc}\n")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
