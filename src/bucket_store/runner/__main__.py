# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Entry point for the bucket-store runner.

Usage:
    python -m bucket_store.runner < input.json > output.json

Reads one RunnerInput document from stdin, runs its operations against a
single store, and writes one RunnerOutput document to stdout.  Log records
go to stderr so stdout stays pure JSON; set ``BUCKET_STORE_LOG_LEVEL``
(default ``WARNING``) to see refused operations or backend failures.

Exit codes:
    0: Every operation succeeded
    1: At least one failure (details in JSON output)
"""

from __future__ import annotations

import logging
import os
import sys

from .executor import Executor
from .schema import RunnerInput, RunnerOutput

LOG_LEVEL_ENV = "BUCKET_STORE_LOG_LEVEL"


def _configure_logging() -> None:
    name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(stream=sys.stderr, level=level, format="%(levelname)s %(name)s: %(message)s")


def main() -> int:
    """Run one batch from stdin.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    _configure_logging()
    try:
        input_data = RunnerInput.model_validate_json(sys.stdin.read())
        output = Executor().execute(input_data)
    except Exception as e:
        # Invalid input still produces a RunnerOutput document
        output = RunnerOutput(success=False, error=str(e), error_type=type(e).__name__)

    print(output.model_dump_json())
    return 0 if output.success else 1


if __name__ == "__main__":
    sys.exit(main())
