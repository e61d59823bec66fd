"""Idempotency ledger: processed signal ids plus an execution audit trail."""

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from signal_publisher.core.entities import utc_now_iso

logger = logging.getLogger(__name__)

MAX_EXECUTIONS = 100


def empty_state() -> dict[str, Any]:
    return {"processed": {}, "executions": [], "metadata": {}}


class LedgerStore(ABC):
    """Persistence for the ledger document."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load the stored document. May raise on missing or corrupt data."""
        pass

    @abstractmethod
    def save(self, state: dict[str, Any]) -> None:
        """Rewrite the stored document wholesale."""
        pass


class JsonFileStore(LedgerStore):
    """Store the ledger as a single JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, Any]:
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, state: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(state, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)

    def __repr__(self) -> str:
        return f"JsonFileStore({str(self.path)!r})"


class MemoryStore(LedgerStore):
    """Keep the ledger document in memory."""

    def __init__(self, state: Optional[dict[str, Any]] = None) -> None:
        self.state = copy.deepcopy(state) if state is not None else None
        self.save_count = 0

    def load(self) -> dict[str, Any]:
        if self.state is None:
            raise FileNotFoundError("memory store is empty")
        return copy.deepcopy(self.state)

    def save(self, state: dict[str, Any]) -> None:
        self.state = copy.deepcopy(state)
        self.save_count += 1


class IdempotencyLedger:
    """Durable record of processed signal ids.

    Every mutation is persisted before returning. Persistence failures are
    logged and swallowed, the in-memory state stays authoritative.
    """

    def __init__(self, store: LedgerStore) -> None:
        self.store = store
        self._lock = threading.RLock()
        self.state = self._load()

    def _load(self) -> dict[str, Any]:
        try:
            data = self.store.load()
        except FileNotFoundError:
            logger.info("No ledger found in %r, starting empty", self.store)
            return empty_state()
        except Exception as e:
            logger.error("Failed to load ledger from %r, starting empty: %s", self.store, e)
            return empty_state()

        if not isinstance(data, dict):
            logger.error("Ledger document is not an object, starting empty")
            return empty_state()

        state = empty_state()
        for key, expected in (("processed", dict), ("executions", list), ("metadata", dict)):
            value = data.get(key)
            if isinstance(value, expected):
                state[key] = value
            elif value is not None:
                logger.warning("Ignoring malformed ledger section %r", key)
        return state

    def save(self) -> None:
        try:
            self.store.save(self.state)
        except Exception as e:
            logger.error("Failed to save ledger: %s", e)

    def has_processed(self, signal_id: str) -> bool:
        with self._lock:
            return signal_id in self.state["processed"]

    def mark_processed(self, signal_id: str, metadata: Optional[dict[str, Any]] = None) -> None:
        """Record signal_id as processed. Re-marking overwrites the metadata."""
        with self._lock:
            self.state["processed"][signal_id] = {
                **(metadata or {}),
                "timestamp": utc_now_iso(),
            }
            self.save()
        logger.info("Signal marked as processed: %s", signal_id)

    def record_execution(
        self, workflow: str, status: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """Append to the audit trail, keeping only the most recent entries."""
        execution = {
            "workflow": workflow,
            "status": status,
            "timestamp": utc_now_iso(),
            "details": details or {},
        }
        with self._lock:
            executions = self.state["executions"]
            executions.append(execution)
            if len(executions) > MAX_EXECUTIONS:
                del executions[: len(executions) - MAX_EXECUTIONS]
            self.save()
        logger.info("Execution recorded: %s %s", workflow, status)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self.state["metadata"].get(key)
            return default if value is None else copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self.state["metadata"][key] = value
            self.save()
        logger.debug("Ledger metadata updated: %s", key)

    def get_processed_signals(self) -> list[str]:
        with self._lock:
            return list(self.state["processed"])

    def get_recent_executions(self, limit: int = 10) -> list[dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self.state["executions"][-limit:]) if limit > 0 else []

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about processed signals."""
        by_kind: dict[str, int] = {}
        with self._lock:
            for signal_id in self.state["processed"]:
                prefix = signal_id.split(":", 1)[0]
                by_kind[prefix] = by_kind.get(prefix, 0) + 1
            return {
                "total_processed": len(self.state["processed"]),
                "by_kind": by_kind,
                "executions": len(self.state["executions"]),
            }
