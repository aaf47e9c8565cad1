import argparse
from typing import List, Optional

from .env import load_env

from . import __version__
from .cache import build_cache
from .config import Settings
from .job_service import JobService
from .logger import get_logger
from .mailing import MailService
from .octopod import OctopodClient
from .scheduler import run_periodically
from .subscriptions import SubscriptionStore


def build_service(settings: Settings) -> JobService:
    """Wire the real Octopod client, cache, subscription store and mailer."""
    return JobService(
        client=OctopodClient.from_settings(settings),
        cache=build_cache(settings),
        subscriptions=SubscriptionStore(settings.db_path),
        mailer=MailService(settings),
    )


def _require_octopod(settings: Settings) -> None:
    errors = settings.validate()
    if errors:
        raise SystemExit("Invalid configuration:\n" + "\n".join(f" - {e}" for e in errors))


def _print_report(report) -> None:
    if report.is_init:
        print("First synchronization: jobs cached, nothing to compare.")
        return
    if not report.has_changes:
        print("No changes.")
        return
    print(f"Added: {len(report.added_jobs)}  Removed: {len(report.removed_jobs)}")
    for job in report.added_jobs:
        print(f" + {job['activity'].get('title')} ({job['project'].get('name')})")
    for job in report.removed_jobs:
        print(f" - {job['activity'].get('title')} ({job['project'].get('name')})")


def cmd_sync(args: argparse.Namespace, settings: Settings) -> None:
    _require_octopod(settings)
    report = build_service(settings).synchronize_jobs()
    _print_report(report)


def cmd_jobs(args: argparse.Namespace, settings: Settings) -> None:
    _require_octopod(settings)
    jobs = build_service(settings).get_jobs()
    if not jobs:
        print("No jobs to be staffed.")
        return
    print(f"{len(jobs)} jobs to be staffed:\n")
    for job in jobs:
        activity = job.get("activity", {})
        project = job.get("project", {})
        print(f"[{activity.get('id')}] {activity.get('title')}")
        print(f"  Project: {project.get('name')}")
        print(f"  Customer: {project.get('customer')}")
        print()


def cmd_watch(args: argparse.Namespace, settings: Settings) -> None:
    _require_octopod(settings)
    interval = args.interval or settings.sync_interval
    service = build_service(settings)
    print(f"Synchronizing every {interval}s (Ctrl+C to stop)")
    try:
        run_periodically(service, interval=interval, max_cycles=args.max_cycles)
    except KeyboardInterrupt:
        print("Stopped.")


def cmd_subscribe(args: argparse.Namespace, settings: Settings) -> None:
    store = SubscriptionStore(settings.db_path)
    try:
        sub, created = store.add(args.email)
    except ValueError as e:
        raise SystemExit(str(e))
    print(f"Subscribed: {sub.email}" if created else f"Already subscribed: {sub.email}")


def cmd_unsubscribe(args: argparse.Namespace, settings: Settings) -> None:
    store = SubscriptionStore(settings.db_path)
    if store.remove(args.email):
        print(f"Unsubscribed: {args.email.strip().lower()}")
    else:
        print(f"Not subscribed: {args.email}")


def cmd_subscribers(args: argparse.Namespace, settings: Settings) -> None:
    subs = SubscriptionStore(settings.db_path).all()
    if not subs:
        print("No subscribers.")
        return
    for sub in subs:
        print(sub.email)


def main(argv: Optional[List[str]] = None):
    # Load .env if present (OCTOPOD_CLIENT_ID, SMTP_*, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="jobboard", description="Staffing jobs synchronization")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    syn = subparsers.add_parser("sync", help="Fetch jobs, compare with the cached ones and notify subscribers")
    syn.set_defaults(func=cmd_sync)

    jbs = subparsers.add_parser("jobs", help="List jobs (from cache, fetching only on cache miss)")
    jbs.set_defaults(func=cmd_jobs)

    wat = subparsers.add_parser("watch", help="Run synchronization periodically")
    wat.add_argument("--interval", type=int, help="Seconds between cycles (default: SYNC_INTERVAL or 3600)")
    wat.add_argument("--max-cycles", type=int, help="Stop after this many cycles")
    wat.set_defaults(func=cmd_watch)

    sub = subparsers.add_parser("subscribe", help="Subscribe an email address to job changes")
    sub.add_argument("--email", required=True, help="Email address")
    sub.set_defaults(func=cmd_subscribe)

    uns = subparsers.add_parser("unsubscribe", help="Unsubscribe an email address")
    uns.add_argument("--email", required=True, help="Email address")
    uns.set_defaults(func=cmd_unsubscribe)

    lst = subparsers.add_parser("subscribers", help="List subscribed email addresses")
    lst.set_defaults(func=cmd_subscribers)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    settings = Settings.from_env()
    get_logger().set_level(settings.log_level)

    if hasattr(args, "func"):
        args.func(args, settings)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
