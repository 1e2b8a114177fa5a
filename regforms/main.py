import argparse
import json
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

from regforms.config.settings import Settings
from regforms.database.connection import Database
from regforms.database.repositories.lookup_repository import LookupRepository
from regforms.directory.dolibarr_client import DolibarrClient
from regforms.documents.exceptions import DocumentNotFoundError, InvalidInputError, RegFormsError
from regforms.documents.workflow import DocumentWorkflow, build_workflow
from regforms.logging.logger import Log


def _load_json(path: str) -> Any:
    source = sys.stdin if path == "-" else Path(path).open(encoding="utf-8")
    with source:
        return json.load(source)


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, default=str, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="regforms", description="Subscriber document generation")
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="generate both documents for a submission")
    generate.add_argument("--kind", required=True)
    generate.add_argument("--data", required=True, help="JSON file, or - for stdin")

    update = commands.add_parser("update", help="regenerate an existing document")
    update.add_argument("reference")
    update.add_argument("--data", required=True, help="JSON file, or - for stdin")

    delete = commands.add_parser("delete", help="delete a document and its files")
    delete.add_argument("reference")

    duplicate = commands.add_parser("check-duplicate", help="look for an existing client")
    duplicate.add_argument("--kind", required=True)
    duplicate.add_argument("--data", required=True, help="JSON file, or - for stdin")

    show = commands.add_parser("show", help="print one document record")
    show.add_argument("reference")

    listing = commands.add_parser("list", help="list documents, newest first")
    listing.add_argument("--type", dest="document_type")
    listing.add_argument("--start", type=date.fromisoformat)
    listing.add_argument("--end", type=date.fromisoformat)
    listing.add_argument("--limit", type=int)
    listing.add_argument("--offset", type=int, default=0)

    commands.add_parser("health", help="check database and directory connectivity")
    commands.add_parser("init-db", help="create missing tables")

    lookup = commands.add_parser("lookup", help="list or edit equipment models and offers")
    lookup.add_argument("table", choices=sorted(LookupRepository.TABLES))
    edit = lookup.add_mutually_exclusive_group()
    edit.add_argument("--add", metavar="NAME")
    edit.add_argument("--remove", metavar="ID", type=int)
    return parser


def _run_lookup(args: argparse.Namespace, repo: LookupRepository) -> Any:
    if args.add is not None:
        try:
            return asdict(repo.upsert(args.add))
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc
    if args.remove is not None:
        if not repo.delete(args.remove):
            raise DocumentNotFoundError(f"{args.table} item {args.remove} not found")
        return {"deleted": args.remove}
    return [asdict(item) for item in repo.list_all()]


def run_command(
    args: argparse.Namespace,
    workflow: DocumentWorkflow,
    database: Database,
    directory: DolibarrClient,
    settings: Settings,
) -> Any:
    if args.command == "generate":
        return asdict(workflow.generate(args.kind, _load_json(args.data)))
    if args.command == "update":
        return asdict(workflow.update(args.reference, _load_json(args.data)))
    if args.command == "delete":
        workflow.delete(args.reference)
        return {"deleted": args.reference}
    if args.command == "check-duplicate":
        return asdict(workflow.check_duplicate(args.kind, _load_json(args.data)))
    if args.command == "show":
        return asdict(workflow.get(args.reference))
    if args.command == "list":
        page = workflow.list_documents(
            document_type=args.document_type,
            start_date=args.start,
            end_date=args.end,
            limit=args.limit or settings.document_page_size,
            offset=args.offset,
        )
        return {**asdict(page), "has_more": page.has_more}
    if args.command == "health":
        health = database.check_health()
        return {
            "status": "healthy" if health.healthy else "unhealthy",
            "database": asdict(health),
            "dolibarr": directory.check_connection() if directory.active else "disabled",
        }
    if args.command == "init-db":
        database.initialize_schema()
        return {"initialized": True}
    if args.command == "lookup":
        return _run_lookup(args, LookupRepository(database, args.table))
    raise ValueError(f"Unknown command '{args.command}'")


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> open pool -> build workflow -> run one command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    with Database(settings) as database:
        workflow = build_workflow(settings, database)
        directory = workflow.directory
        try:
            _emit(run_command(args, workflow, database, directory, settings))
        except RegFormsError as exc:
            Log.error(f"{args.command} failed: {exc}")
            print(f"error: {exc}", file=sys.stderr)
            return 1
        finally:
            directory.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
