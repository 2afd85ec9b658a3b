from __future__ import annotations
import json
import subprocess
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from .exceptions import CollectorError, DataIntegrityError
from .schema import VnStatDocument
from .types import VnStatMode

logger = structlog.get_logger()

DEFAULT_TIMEOUT_S = 10.0


def parse_document(text: str | bytes) -> VnStatDocument:
    """Parse `vnstat --json` output (str or raw bytes) into a VnStatDocument."""
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise DataIntegrityError(f"vnstat output is not valid JSON: {e}") from e
    try:
        return VnStatDocument.model_validate(raw)
    except ValidationError as e:
        raise DataIntegrityError(f"Unexpected vnstat document layout: {e}") from e


class VnStatCollector:
    """Runs the vnstat binary once per call; no caching, no daemon handling."""

    def __init__(
        self,
        binary: str = "vnstat",
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        extra_args: Optional[Sequence[str]] = None,
    ):
        self.binary = binary
        self.timeout = timeout
        self.extra_args = list(extra_args or [])

    def command(self, mode: VnStatMode) -> list[str]:
        return [self.binary, *self.extra_args, "--json", mode]

    def fetch(self, mode: VnStatMode) -> VnStatDocument:
        cmd = self.command(mode)
        logger.info("vnstat_invoked", cmd=cmd)
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            logger.error("vnstat_missing", binary=self.binary)
            raise CollectorError(f"vnstat binary not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            logger.error("vnstat_timeout", timeout=self.timeout)
            raise CollectorError(
                f"vnstat did not finish within {self.timeout:g}s"
            ) from e

        if proc.returncode != 0:
            stderr = (proc.stderr or b"").decode("utf-8", "replace").strip()
            logger.error("vnstat_failed", returncode=proc.returncode, stderr=stderr)
            raise CollectorError(
                f"vnstat exited with status {proc.returncode}: {stderr}"
            )
        return parse_document(proc.stdout)
