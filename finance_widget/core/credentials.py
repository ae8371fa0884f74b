"""
Durable storage for the delegated Xero credential.

The store is a passive serialization boundary: it reads and writes a single
JSON document and never talks to the network. Ownership of the in-memory
credential belongs to the token manager.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class Credential(BaseModel):
    """Access/refresh token pair plus the tenant they are scoped to."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_token: str = Field("", description="Short-lived Xero access token")
    refresh_token: str = Field("", description="Rotating Xero refresh token")
    tenant_id: str = Field(
        "",
        validation_alias=AliasChoices("tenant_id", "tenantId"),
        description="Selected Xero tenant ID",
    )
    tenant_name: str = Field(
        "",
        validation_alias=AliasChoices("tenant_name", "tenantName"),
        description="Selected Xero organisation name",
    )

    @property
    def is_authorized(self) -> bool:
        return bool(self.refresh_token)


class CredentialStore:
    """Reads and atomically rewrites the credential JSON document."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Credential:
        """
        Load the stored credential.

        Returns:
            The persisted credential, or an empty (unauthorised) one when the
            file is missing or unreadable.
        """
        if not self.path.exists():
            logger.info(f"No stored Xero credential at {self.path}")
            return Credential()

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            credential = Credential.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to read credential file {self.path}: {e}")
            return Credential()

        logger.info("Loaded stored Xero credential")
        return credential

    def save(self, credential: Credential) -> bool:
        """
        Persist the credential, replacing the previous document atomically.

        Write failures are logged rather than raised so that the in-memory
        credential keeps serving requests.

        Returns:
            True when the document was written
        """
        payload = credential.model_dump_json(indent=2)
        directory = self.path.parent
        tmp_name = None

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"Failed to write credential file {self.path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

        logger.info("Xero credential saved to disk")
        return True
