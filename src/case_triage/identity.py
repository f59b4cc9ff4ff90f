"""Identity token from the local gcloud CLI (or any command printing a bearer token)."""

import logging
import subprocess
from typing import Sequence

from case_triage.errors import IdentityError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ("gcloud", "auth", "print-identity-token")


def obtain_identity_token(command: Sequence[str] = DEFAULT_COMMAND) -> str:
    """
    Run the identity tool and return its trimmed stdout.
    Raises IdentityError if the tool is missing, exits non-zero, or prints nothing.
    """
    logger.debug("Running identity command: %s", " ".join(command))
    try:
        proc = subprocess.run(list(command), capture_output=True, text=True, check=False)
    except OSError as e:
        raise IdentityError(f"Could not run identity command '{command[0]}'", str(e)) from e

    if proc.returncode != 0:
        raise IdentityError(
            f"Identity command exited with status {proc.returncode}",
            (proc.stderr or "").strip() or None,
        )
    token = (proc.stdout or "").strip()
    if not token:
        raise IdentityError("Identity command produced no token", (proc.stderr or "").strip() or None)
    return token
