"""
Script to check whether the backend is reachable
"""

import asyncio
import sys
import os

# Add current directory to path to allow imports from core, client, etc.
sys.path.append(os.getcwd())

from console import Console
from core.logging import setup_logging


async def check() -> int:
    async with Console() as console:
        status = console.server_status()
        result = await status.check()
        line = f"Backend server: {result}"
        if status.error:
            line += f" ({status.error})"
        print(line)
        return 0 if status.connected else 1


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(check()))
