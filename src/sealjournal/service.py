"""Request-level journal operations for a transport layer (HTTP, CLI).

Each method takes the caller's password, delegates to a
:class:`JournalTransactor` and returns JSON-ready dicts. Transport code maps
raised errors to responses with :func:`error_response`.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from sealjournal.core.config import Config
from sealjournal.core.exceptions import (
    NotFoundError,
    PasswordRequiredError,
    SealJournalError,
    ValidationError,
)
from sealjournal.core.storage import SealedStore
from sealjournal.journal.models import DEFAULT_TITLE, require_password
from sealjournal.journal.transactor import JournalTransactor


class JournalService:
    """The operations a journal front end needs, one call per request."""

    def __init__(self, transactor: JournalTransactor):
        self.transactor = transactor

    @classmethod
    def from_config(cls, config: Config) -> JournalService:
        """Wire a store and transactor from ``paths.*`` and ``journal.title``."""
        data_file, public_key_file = config.get_store_paths()
        store = SealedStore(data_file, public_key_file)
        return cls(JournalTransactor(store, title=config.get("journal.title", DEFAULT_TITLE)))

    async def unlock(self, password: str | None) -> dict[str, Any]:
        """Return ``{"payload": journal, "privateKey": pem}``, creating an empty journal first if needed."""
        password = require_password(password)
        if await self.transactor.ensure_initialized(password):
            logger.info("Initialized a new journal on first unlock")
        unsealed = await self.transactor.read_unsealed(password)
        return unsealed.to_dict()

    async def get_day(self, password: str | None, day: str) -> dict[str, Any]:
        password = require_password(password)
        return (await self.transactor.get_day(password, day)).to_dict()

    async def append_entry(self, password: str | None, day: str, content: str) -> dict[str, Any]:
        password = require_password(password)
        return (await self.transactor.append_entry(password, day, content)).to_dict()

    async def edit_entry(
        self,
        password: str | None,
        entry_id: str,
        content: str,
        timestamp: str | None = None,
    ) -> dict[str, Any]:
        password = require_password(password)
        return (await self.transactor.edit_entry(password, entry_id, content, timestamp)).to_dict()

    async def set_summary(self, password: str | None, day: str, summary: str) -> dict[str, Any]:
        password = require_password(password)
        return (await self.transactor.set_summary(password, day, summary)).to_dict()

    async def close(self) -> None:
        await self.transactor.stop()


def error_response(exc: Exception) -> tuple[int, dict[str, str]]:
    """Map an exception to an HTTP-style ``(status, body)`` pair.

    Crypto and integrity failures collapse into one generic server error so
    a client learns nothing about why unsealing failed.
    """
    if isinstance(exc, PasswordRequiredError):
        return 400, {"error": "Password required"}
    if isinstance(exc, ValidationError):
        return 400, {"error": str(exc)}
    if isinstance(exc, NotFoundError):
        return 404, {"error": "Not found"}
    if isinstance(exc, SealJournalError):
        return 500, {"error": "Server error"}
    logger.opt(exception=exc).error("Unexpected error while serving a journal request")
    return 500, {"error": "Server error"}
