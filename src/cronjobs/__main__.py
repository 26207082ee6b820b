"""CLI entry point — ``python -m cronjobs run|serve|list|add|validate|start|stop|remove|clear``."""

from __future__ import annotations

import argparse
import logging
import sys

from cronjobs.config import get_settings
from cronjobs.cron import is_valid_expression
from cronjobs.errors import BatchError, CronJobsError, FormatError
from cronjobs.jobs import Job


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cronjobs",
        description="cronjobs — run stored jobs whose cron expression matches the current minute.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run every job due right now, once.")
    sub.add_parser("serve", help="Start long-lived per-minute ticking (timer + health check).")
    sub.add_parser("list", help="Show stored jobs and their next run time.")
    sub.add_parser("clear", help="Delete every stored job.")

    add = sub.add_parser("add", help="Schedule a new job.")
    add.add_argument("expression", help='Cron expression, e.g. "*/5 * * * *".')
    add.add_argument("callback", help="Dotted name of a registered callback.")
    add.add_argument("--name", default=None, help="Display name.")
    add.add_argument("--timezone", default=None, help="Timezone override.")
    add.add_argument(
        "--paused",
        action="store_true",
        default=False,
        help="Store the job stopped.",
    )

    validate = sub.add_parser("validate", help="Check a cron expression.")
    validate.add_argument("expression")

    for name, help_text in [
        ("start", "Resume a stopped job."),
        ("stop", "Pause a job."),
        ("remove", "Delete a job."),
    ]:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("job_id")

    return parser


def _format_job(job: Job) -> str:
    try:
        next_run = job.next_run_time()
    except FormatError:
        next_run = None
    return "  ".join(
        [
            job.id,
            job.name or "-",
            "scheduled" if job.is_scheduled() else "stopped",
            f"'{job.expression}'",
            job.callback,
            next_run.isoformat(timespec="minutes") if next_run else "never",
        ]
    )


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args and dispatch to the matching command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "validate":
        valid = is_valid_expression(args.expression)
        print("valid" if valid else "invalid")
        return 0 if valid else 1

    if args.command == "serve":
        from cronjobs.scheduler.runner import serve

        try:
            serve(settings)
        except ImportError as exc:
            print(f"Cannot import callback module: {exc}", file=sys.stderr)
            return 2
        return 0

    from cronjobs.scheduler.scheduler import create_scheduler

    try:
        scheduler = create_scheduler(settings)
    except ImportError as exc:
        print(f"Cannot import callback module: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "run":
            try:
                result = scheduler.run()
            except BatchError as exc:
                for message in exc.messages:
                    print(message, file=sys.stderr)
                return 1
            print(f"{len(result.job_ids)} job(s) ran")
            return 0

        if args.command == "list":
            for job in scheduler.get_jobs():
                print(_format_job(job))
            return 0

        if args.command == "add":
            job = scheduler.schedule(
                args.expression,
                args.callback,
                name=args.name,
                scheduled=not args.paused,
                timezone=args.timezone,
            )
            print(job.id)
            return 0

        if args.command == "clear":
            scheduler.clear_jobs()
            return 0

        if args.command == "remove":
            if not scheduler.store.remove(args.job_id):
                print(f"No job with id {args.job_id}", file=sys.stderr)
                return 2
            return 0

        if args.command in ("start", "stop"):
            job = scheduler.get_job(args.job_id)
            if job is None:
                print(f"No job with id {args.job_id}", file=sys.stderr)
                return 2
            if args.command == "start":
                job.start()
            else:
                job.stop()
            return 0
    except CronJobsError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    return 1  # unreachable with required=True


if __name__ == "__main__":
    sys.exit(main())
