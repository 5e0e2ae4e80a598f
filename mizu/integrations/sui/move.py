"""
Compile a Move package with the Sui CLI.

``sui move build --dump-bytecode-as-base64`` prints a JSON document with
the base64 modules and the dependency package ids, which is exactly what
a Publish payload needs.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from mizu.pipeline.errors import MizuError
from mizu.pipeline.payload import Publish

logger = logging.getLogger(__name__)


class MoveBuildError(MizuError):
    """The Move package could not be compiled."""

    kind = "move_build_failed"


async def build_package(path: str | os.PathLike[str], sui_bin: str = "sui") -> Publish:
    """
    Compile the package at ``path`` into a Publish payload.

    Raises:
        MoveBuildError: the CLI is missing, fails, or prints unexpected output
    """
    package = Path(path)
    logger.info(f"Building move code in {package}...")

    try:
        process = await asyncio.create_subprocess_exec(
            sui_bin,
            "move",
            "build",
            "--dump-bytecode-as-base64",
            "--path",
            str(package),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise MoveBuildError(f"Sui CLI not found: {sui_bin}") from e

    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise MoveBuildError(
            f"sui move build exited with {process.returncode}: "
            f"{stderr.decode(errors='replace').strip()}"
        )

    try:
        data = json.loads(stdout)
        return Publish(
            modules=tuple(data["modules"]),
            dependencies=tuple(data["dependencies"]),
        )
    except (ValueError, KeyError, TypeError) as e:
        raise MoveBuildError(f"Unexpected sui move build output: {e}") from e
