"""active_users_report.py

Print the daily active user report to the terminal.

Takes the same arguments as the ``!active_users`` chat command and prints
each message that the bot would send.  Use ``--raw`` to print the report
as a single block without code fences.
"""

from __future__ import annotations

import argparse
import logging
import sys

import config
from active_users import (
    STORE_FAILURE_MESSAGE,
    ReportArgumentError,
    build_active_users_report,
    parse_report_args,
    report_title,
)
from activity_store import ActivityStore, StoreError
from message_chunks import split_long_message

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the active users report."""
    parser = argparse.ArgumentParser(description='Report daily active users from the activity store')
    parser.add_argument('report_args', nargs='*', metavar='ARG',
                        help='LIST (true/false, default false) then DAYS (default %d)' % config.DEFAULT_DAYS)
    parser.add_argument('--limit', type=int, default=config.MESSAGE_LIMIT,
                        help='Maximum message length (default: %(default)s)')
    parser.add_argument('--raw', action='store_true',
                        help='Print the report as one block instead of chat-sized messages')
    parser.add_argument('--mongodb-uri', default=config.MONGODB_URI,
                        help='MongoDB connection string (default: MONGODB_URI)')

    args = parser.parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    try:
        request = parse_report_args(args.report_args)
    except ReportArgumentError as e:
        parser.error(str(e))

    store = ActivityStore(uri=args.mongodb_uri)
    try:
        report = build_active_users_report(store, request["days"], request["list_mode"])
    except ReportArgumentError as e:
        parser.error(str(e))
    except StoreError:
        logger.exception("Active users query failed")
        print(STORE_FAILURE_MESSAGE, file=sys.stderr)
        sys.exit(1)
    finally:
        store.close()

    if args.raw:
        print(report, end="")
        return

    try:
        chunks = split_long_message(report, config.MESSAGE_WRAPPER, args.limit)
    except ValueError as e:
        parser.error(str(e))

    print(report_title(request["list_mode"]))
    for chunk in chunks:
        print(chunk)


if __name__ == '__main__':
    main()
