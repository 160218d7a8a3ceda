"""
Script to print a page of imports for a data source
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, client, etc.
sys.path.append(os.getcwd())

from console import Console
from core.logging import setup_logging
from views.imports import format_file_size

logger = logging.getLogger(__name__)


async def list_imports(data_source_id: str, page: int, page_size: int) -> int:
    async with Console() as console:
        if await console.start() is None:
            logger.error("No persisted session; log in first (scripts/import_file.py --email ...)")
            return 1

        view = console.import_list(data_source_id, page_size=page_size)
        view.page = page
        if not await view.load():
            print(view.error, file=sys.stderr)
            return 1

        name = view.data_source.name if view.data_source else data_source_id
        print(f"Imports for {name} (page {view.page}, {view.total} total)")
        for record in view.items:
            print(
                f"{record.id}  {record.file_name:<30} {format_file_size(record.file_size):>10}  "
                f"{record.status.value:<10} rows={record.row_count} "
                f"ok={record.success_count} errors={record.error_count}"
            )
        return 0


def main():
    parser = argparse.ArgumentParser(description="List imports of a data source")
    parser.add_argument("data_source", help="Data source id")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=None)
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(list_imports(args.data_source, args.page, args.page_size)))


if __name__ == "__main__":
    main()
