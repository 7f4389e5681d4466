import argparse
import json
import logging

from personetl.config import WRITE_FAILURE_POLICIES, get_settings
from personetl.database import build_session_factory
from personetl.people import create_person, delete_all_people, delete_person, list_people, update_person
from personetl.pipeline import PipelineRunner, job_info, report_from_run
from personetl.run_store import list_runs
from personetl.scheduler import start_scheduler
from personetl.schemas import RunStatus
from personetl.store import SqlPersonStore


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import person names from CSV files")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="run one import")
    import_parser.add_argument("--source", required=False, help="source name under INPUT_DIR or a file path")
    import_parser.add_argument("--chunk-size", type=positive_int, required=False, help="records per commit")
    import_parser.add_argument(
        "--write-failure-policy",
        choices=list(WRITE_FAILURE_POLICIES),
        required=False,
        help="abort the run or continue with the next chunk when a commit fails",
    )

    subparsers.add_parser("info", help="show the import job configuration")

    runs_parser = subparsers.add_parser("runs", help="list recent imports")
    runs_parser.add_argument("--limit", type=positive_int, default=20)

    people_parser = subparsers.add_parser("people", help="manage stored people")
    people_commands = people_parser.add_subparsers(dest="people_command", required=True)
    people_commands.add_parser("list", help="list all people")
    add_parser = people_commands.add_parser("add", help="add one person")
    add_parser.add_argument("name")
    update_parser = people_commands.add_parser("update", help="rename one person")
    update_parser.add_argument("person_id", type=int)
    update_parser.add_argument("name")
    delete_parser = people_commands.add_parser("delete", help="delete one person")
    delete_parser.add_argument("person_id", type=int)
    people_commands.add_parser("clear", help="delete every person")

    schedule_parser = subparsers.add_parser("schedule", help="start daily scheduler")
    schedule_parser.add_argument("--run-now", action="store_true", help="also import once immediately")

    return parser.parse_args(argv)


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _people_command(args: argparse.Namespace, session_factory) -> int:
    with session_factory() as db:
        store = SqlPersonStore(db)
        if args.people_command == "list":
            _print_json([{"id": person.id, "name": person.name} for person in list_people(store)])
            return 0
        if args.people_command == "add":
            try:
                person = create_person(store, args.name)
            except ValueError as exc:
                print(exc)
                return 1
            _print_json({"id": person.id, "name": person.name})
            return 0
        if args.people_command == "update":
            try:
                person = update_person(store, args.person_id, args.name)
            except ValueError as exc:
                print(exc)
                return 1
            if person is None:
                print(f"person {args.person_id} not found")
                return 1
            _print_json({"id": person.id, "name": person.name})
            return 0
        if args.people_command == "delete":
            if not delete_person(store, args.person_id):
                print(f"person {args.person_id} not found")
                return 1
            return 0
        deleted = delete_all_people(store)
        print(f"deleted={deleted}")
        return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.command == "info":
        _print_json(job_info(settings))
        return

    session_factory = build_session_factory(settings.database_url)
    if args.command == "schedule":
        start_scheduler(settings, session_factory, run_now=args.run_now)
        return

    if args.command == "people":
        raise SystemExit(_people_command(args, session_factory))

    if args.command == "runs":
        with session_factory() as db:
            _print_json([report_from_run(run) for run in list_runs(db, limit=args.limit)])
        return

    runner = PipelineRunner(settings, session_factory)
    report = runner.run(
        args.source,
        chunk_size=args.chunk_size,
        write_failure_policy=args.write_failure_policy,
    )
    _print_json(report.to_dict())
    if report.status is RunStatus.FAILED:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
