"""
Script to import a CSV file into a data source through the import wizard
"""

import argparse
import asyncio
import getpass
import sys
import os
import logging

# Add current directory to path to allow imports from core, client, etc.
sys.path.append(os.getcwd())

from console import Console
from core.exceptions import ConsoleException
from core.logging import setup_logging
from wizard.states import UploadFile, WizardStep

logger = logging.getLogger(__name__)


def parse_mapping(value: str):
    field, sep, index = value.partition("=")
    if not sep or not field.strip():
        raise argparse.ArgumentTypeError(f"expected field=index, got '{value}'")
    try:
        return field.strip(), int(index)
    except ValueError:
        raise argparse.ArgumentTypeError(f"column index must be an integer, got '{index}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a CSV file into a data source")
    parser.add_argument("--data-source", required=True, help="Data source id")
    parser.add_argument("--file", required=True, help="Path to the CSV file")
    parser.add_argument("--date-format", help="Override the date format")
    parser.add_argument(
        "--map",
        action="append",
        default=[],
        type=parse_mapping,
        metavar="FIELD=INDEX",
        help="Map a standard field to a zero-based column index (repeatable)"
    )
    parser.add_argument("--email", help="Log in with this email if no session is persisted")
    parser.add_argument("--password", help="Password for --email (prompted when omitted)")
    return parser


async def run_import(args) -> int:
    async with Console() as console:
        identity = await console.start()
        if identity is None:
            if not args.email:
                logger.error("No persisted session; pass --email to log in")
                return 1
            password = args.password or getpass.getpass("Password: ")
            identity = await console.session.login(args.email, password)
        logger.info(f"Importing as {identity.email}")

        wizard = console.import_wizard()
        try:
            wizard.select_source(args.data_source)
            wizard.advance()
            wizard.choose_file(UploadFile.from_path(args.file))
            await wizard.upload()

            if args.date_format:
                wizard.set_date_format(args.date_format)
            for field, index in args.map:
                wizard.set_mapping(field, index)

            summary = wizard.summary()
            logger.info(f"Date format: {summary['date_format']}")
            for field, label in summary["mappings"].items():
                logger.info(f"  {field} -> {label}")

            if wizard.step == WizardStep.PREVIEW_MAP:
                wizard.advance()
            route = await wizard.submit()
        except ConsoleException as e:
            print(wizard.error or e.message, file=sys.stderr)
            return 1

        print(route)
        return 0


def main():
    setup_logging()
    args = build_parser().parse_args()
    try:
        sys.exit(asyncio.run(run_import(args)))
    except ConsoleException as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
