"""Source adapters for detecting signals."""

from signal_publisher.adapters.sources.github_source import GitHubClient, GitHubSignalSource

__all__ = ["GitHubClient", "GitHubSignalSource"]
