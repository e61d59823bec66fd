"""GitHub source for commits, README updates and issues of one repository."""

import logging
from typing import Any, Optional

import httpx

from signal_publisher.adapters.http_errors import check_response, json_body
from signal_publisher.core import (
    ActivityFeed,
    HealthReport,
    HealthStatus,
    IdempotencyLedger,
    Signal,
    SignalKind,
    SignalSource,
)
from signal_publisher.core.errors import NotFoundError, PipelineError, TransportError
from signal_publisher.core.policy import PRIORS

logger = logging.getLogger(__name__)


class GitHubClient(ActivityFeed):
    """Fetch recent activity for a repository from the GitHub REST API."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.token = token
        self.timeout = timeout
        self.api_base = "https://api.github.com"

        if not self.token:
            logger.warning("GITHUB_TOKEN not set, GitHub requests are unauthenticated")

    @property
    def repo_url(self) -> str:
        return f"{self.api_base}/repos/{self.owner}/{self.repo}"

    async def fetch_recent(self, kind: SignalKind, limit: int) -> list[dict[str, Any]]:
        """Fetch raw events of one kind, newest first."""
        if kind is SignalKind.COMMIT:
            return await self._get_list("commits", {"per_page": limit})
        if kind is SignalKind.DOCUMENT_UPDATE:
            return [await self._get("readme")]
        if kind is SignalKind.ISSUE:
            return await self._get_list(
                "issues",
                {"state": "open", "per_page": limit, "sort": "created", "direction": "desc"},
            )
        return []

    async def _get_list(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        data = await self._get(path, params)
        if not isinstance(data, list):
            raise TransportError(f"GitHub {path}: expected a list, got {type(data).__name__}")
        return data

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.repo_url}/{path}" if path else self.repo_url
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self._get_headers(), params=params)
        except httpx.HTTPError as e:
            raise TransportError(f"GitHub {path}: {e}") from e

        check_response(response, f"GitHub {path}")
        return json_body(response, f"GitHub {path}")

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers

    async def health_check(self) -> HealthReport:
        if not self.owner or not self.repo:
            return HealthReport(HealthStatus.UNHEALTHY, "GitHub owner/repo not configured")
        try:
            await self._get("")
        except PipelineError as e:
            return HealthReport(HealthStatus.UNHEALTHY, str(e))
        if not self.token:
            return HealthReport(HealthStatus.DEGRADED, "No GitHub token, limited rate")
        return HealthReport(HealthStatus.HEALTHY, f"{self.owner}/{self.repo} reachable")


class GitHubSignalSource(SignalSource):
    """Turn GitHub activity into signals, skipping ids already in the ledger."""

    def __init__(
        self,
        feed: ActivityFeed,
        ledger: IdempotencyLedger,
        commit_limit: int = 5,
        issue_limit: int = 5,
    ) -> None:
        self.feed = feed
        self.ledger = ledger
        self.limits = {
            SignalKind.COMMIT: commit_limit,
            SignalKind.DOCUMENT_UPDATE: 1,
            SignalKind.ISSUE: issue_limit,
        }

    async def detect_signals(self) -> list[Signal]:
        signals: list[Signal] = []
        seen_ids: set[str] = set()

        for kind, limit in self.limits.items():
            try:
                events = await self.feed.fetch_recent(kind, limit)
            except NotFoundError as e:
                logger.debug("Skipping %s signals: %s", kind.value, e)
                continue
            except PipelineError as e:
                logger.warning("Could not fetch %s activity: %s", kind.value, e)
                continue

            for event in events:
                try:
                    signal = self._to_signal(kind, event)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping malformed %s event: %s", kind.value, e)
                    continue

                if signal is None or signal.id in seen_ids:
                    continue
                seen_ids.add(signal.id)

                if self.ledger.has_processed(signal.id):
                    continue
                signals.append(signal)
                logger.info("New %s signal detected: %s", kind.value, signal.id)

        logger.info("Signal detection complete: %d new signals", len(signals))
        return signals

    def _to_signal(self, kind: SignalKind, event: dict[str, Any]) -> Optional[Signal]:
        if kind is SignalKind.COMMIT:
            commit = event["commit"]
            return Signal(
                id=f"commit:{event['sha']}",
                kind=kind,
                payload={
                    "sha": event["sha"],
                    "message": commit["message"],
                    "author": (commit.get("author") or {}).get("name"),
                    "date": (commit.get("author") or {}).get("date"),
                    "url": event.get("html_url"),
                    "files_changed": len(event.get("files") or []),
                },
                confidence=PRIORS[kind],
            )

        if kind is SignalKind.DOCUMENT_UPDATE:
            return Signal(
                id=f"readme:{event['sha']}",
                kind=kind,
                payload={
                    "sha": event["sha"],
                    "name": event.get("name", "README"),
                    "path": event.get("path"),
                    "url": event.get("html_url"),
                    "size": event.get("size"),
                },
                confidence=PRIORS[kind],
            )

        if kind is SignalKind.ISSUE:
            # Pull requests are listed by the issues endpoint too.
            if event.get("pull_request"):
                return None
            return Signal(
                id=f"issue:{event['number']}",
                kind=kind,
                payload={
                    "number": event["number"],
                    "title": event["title"],
                    "state": event.get("state"),
                    "author": (event.get("user") or {}).get("login"),
                    "created_at": event.get("created_at"),
                    "url": event.get("html_url"),
                    "labels": [label["name"] for label in event.get("labels") or []],
                },
                confidence=PRIORS[kind],
            )

        return None

    async def health_check(self) -> HealthReport:
        return await self.feed.health_check()
