"""CLI entry point for signal publisher."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from signal_publisher.adapters.context import WikipediaLookup
from signal_publisher.adapters.images import PexelsSearch, UnsplashSearch
from signal_publisher.adapters.llm import AnthropicClient, HuggingFaceClient
from signal_publisher.adapters.publishing import LinkedInClient
from signal_publisher.adapters.sources import GitHubClient, GitHubSignalSource
from signal_publisher.config import Settings, get_settings
from signal_publisher.core import (
    ContentGenerator,
    DataNormalizer,
    HealthStatus,
    IdempotencyLedger,
    ImageSearch,
    ImageSelector,
    JsonFileStore,
    PromptBuilder,
    Publisher,
    QueueItem,
    SignalClassifier,
    SignalEnricher,
    TextGenerator,
)
from signal_publisher.core.errors import PipelineError
from signal_publisher.logging_config import setup_logging
from signal_publisher.use_cases import HealthService, PipelineService

logger = logging.getLogger(__name__)

cli = typer.Typer(help="Turn repository activity into reviewed LinkedIn posts.", no_args_is_help=True)

ConfigOption = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to YAML config")

STATUS_ICONS = {
    HealthStatus.HEALTHY: "✓",
    HealthStatus.DEGRADED: "⚠️ ",
    HealthStatus.UNHEALTHY: "✗",
}


@dataclass
class Components:
    """Wired pipeline components sharing one ledger."""

    settings: Settings
    ledger: IdempotencyLedger
    feed: GitHubClient
    source: GitHubSignalSource
    enricher: SignalEnricher
    content_generator: ContentGenerator
    image_selector: Optional[ImageSelector]
    publish_target: LinkedInClient
    publisher: Publisher
    pipeline: PipelineService


def build_text_generator(settings: Settings) -> Optional[TextGenerator]:
    """Select the text generator named in config, if its credential is present."""
    gen = settings.generation
    provider = gen.provider.lower()

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY not set, generation will use the fallback template")
            return None
        return AnthropicClient(
            api_key=settings.anthropic_api_key,
            model=gen.anthropic_model,
            max_tokens=gen.max_tokens,
            temperature=gen.temperature,
            timeout=gen.timeout,
            max_retries=gen.max_retries,
            initial_retry_delay=gen.initial_retry_delay,
        )

    if provider == "huggingface":
        if not settings.huggingface_token:
            logger.warning("HUGGINGFACE_TOKEN not set, generation will use the fallback template")
            return None
        return HuggingFaceClient(
            token=settings.huggingface_token,
            model=gen.huggingface_model,
            health_model=gen.huggingface_health_model,
            max_tokens=gen.max_tokens,
            temperature=gen.temperature,
            top_p=gen.top_p,
            timeout=gen.timeout,
            max_retries=gen.max_retries,
            initial_retry_delay=gen.initial_retry_delay,
        )

    logger.warning("Unknown generation provider %r, generation will use the fallback template", gen.provider)
    return None


def build_image_searches(settings: Settings) -> list[ImageSearch]:
    """Stock image providers in priority order."""
    searches: list[ImageSearch] = []
    timeout = settings.images.timeout
    if settings.unsplash_access_key:
        searches.append(UnsplashSearch(settings.unsplash_access_key, timeout=timeout))
    if settings.pexels_api_key:
        searches.append(PexelsSearch(settings.pexels_api_key, timeout=timeout))
    return searches


def build_components(settings: Settings) -> Components:
    """Wire every pipeline stage against a single ledger instance."""
    ledger = IdempotencyLedger(JsonFileStore(settings.state_file))

    feed = GitHubClient(
        owner=settings.github.owner,
        repo=settings.github.repo,
        token=settings.github_token,
        timeout=settings.github.timeout,
    )
    source = GitHubSignalSource(
        feed,
        ledger,
        commit_limit=settings.github.commit_limit,
        issue_limit=settings.github.issue_limit,
    )

    enrichment = settings.enrichment
    enricher = SignalEnricher(
        lookup=WikipediaLookup(timeout=enrichment.timeout) if enrichment.enabled else None,
        max_keywords=enrichment.max_keywords,
        max_context_length=enrichment.max_context_length,
        request_delay=enrichment.request_delay,
    )

    prompt_builder = PromptBuilder()
    content_generator = ContentGenerator(
        text_generator=build_text_generator(settings),
        prompt_builder=prompt_builder,
        request_delay=settings.generation.request_delay,
        timeout=settings.generation.timeout,
        max_length=settings.publishing.max_length,
    )

    image_selector = None
    if settings.images.enabled:
        image_selector = ImageSelector(build_image_searches(settings), request_delay=settings.images.request_delay)

    publish_target = LinkedInClient(
        access_token=settings.linkedin_access_token,
        person_urn=settings.linkedin_person_urn,
        timeout=settings.publishing.timeout,
    )
    publisher = Publisher(
        target=publish_target,
        auto_publish=settings.linkedin_auto_publish,
        ledger=ledger,
        max_length=settings.publishing.max_length,
    )

    pipeline = PipelineService(
        source=source,
        classifier=SignalClassifier(),
        enricher=enricher,
        normalizer=DataNormalizer(max_context_length=enrichment.max_context_length),
        prompt_builder=prompt_builder,
        content_generator=content_generator,
        publisher=publisher,
        ledger=ledger,
        image_selector=image_selector,
        confidence_threshold=settings.confidence_threshold,
        workflow_name=settings.pipeline.workflow_name,
    )

    return Components(
        settings=settings,
        ledger=ledger,
        feed=feed,
        source=source,
        enricher=enricher,
        content_generator=content_generator,
        image_selector=image_selector,
        publish_target=publish_target,
        publisher=publisher,
        pipeline=pipeline,
    )


def _load(config: Path) -> Components:
    settings = get_settings(config)
    setup_logging(settings.logging.level)
    return build_components(settings)


def _print_header(title: str) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


def _print_credentials(settings: Settings) -> None:
    print("\n🔑 Credentials:")
    if settings.github_token:
        print("  ✓ GITHUB_TOKEN - authenticated GitHub requests")
    else:
        print("  ⚠️  GITHUB_TOKEN - not found (limited rate limit)")

    provider = settings.generation.provider.lower()
    key = settings.anthropic_api_key if provider == "anthropic" else settings.huggingface_token
    if key:
        print(f"  ✓ {provider} - text generation enabled")
    else:
        print(f"  ⚠️  {provider} - credential not found (fallback template only)")

    if settings.unsplash_access_key or settings.pexels_api_key:
        print("  ✓ Stock images - Unsplash/Pexels configured")
    else:
        print("  ⚠️  Stock images - no keys (AI image prompts only)")

    if settings.linkedin_access_token and settings.linkedin_person_urn:
        mode = "auto-publish" if settings.linkedin_auto_publish else "queue-first"
        print(f"  ✓ LinkedIn - {mode}")
    else:
        print("  ⚠️  LinkedIn - credentials not found (posts will be queued)")


def _print_queue_item(item: QueueItem) -> None:
    content = item.content
    print(f"\n• {item.id} [{item.status.value}] {item.created_at}")
    print(f"  Signal: {content.signal_id} ({content.signal_type})")
    print(f"  Topic: {content.topic}")
    if content.provider != "primary":
        print(f"  ⚠️  Provider: {content.provider} (review before publishing)")
    if item.post_id:
        print(f"  Post: {item.post_id}")
    preview = (content.text or "").replace("\n", " ")
    print(f"  {preview[:160]}{'...' if len(preview) > 160 else ''}")


async def async_run(components: Components) -> None:
    """Async implementation of run command."""
    settings = components.settings

    _print_header("📣 SIGNAL PUBLISHER - Repository activity to LinkedIn")
    _print_credentials(settings)

    print("\n⚙️  Settings:")
    print(f"  • Repository: {settings.github.owner}/{settings.github.repo}")
    print(f"  • Confidence threshold: {settings.confidence_threshold:.0%}")
    print(f"  • State file: {settings.state_file}")

    report = await components.pipeline.run()

    counts = report.counts
    _print_header("✅ DONE")
    print(f"  • Published: {counts['published']}")
    print(f"  • Queued for review: {counts['queued']}")
    print(f"  • Skipped (low confidence): {counts['skipped']}")
    print(f"  • Errors: {counts['error']}")
    for result in report.results:
        if result.error:
            print(f"  ⚠️  {result.signal_id}: {result.error}")
    print()


@cli.command()
def run(config: Path = ConfigOption) -> None:
    """Detect new repository activity and publish or queue posts."""
    components = _load(config)
    asyncio.run(async_run(components))


@cli.command()
def schedule(
    config: Path = ConfigOption,
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between runs"),
) -> None:
    """Run the pipeline repeatedly until interrupted."""
    components = _load(config)
    seconds = interval or components.settings.pipeline.schedule_interval

    async def loop() -> None:
        while True:
            try:
                await async_run(components)
            except Exception:
                logger.exception("Scheduled run failed")
            print(f"⏳ Next run in {seconds:.0f}s")
            await asyncio.sleep(seconds)

    try:
        asyncio.run(loop())
    except KeyboardInterrupt:
        print("\nStopped.")


@cli.command()
def queue(
    config: Path = ConfigOption,
    status: str = typer.Option("pending", "--status", help="pending, published, rejected or all"),
) -> None:
    """List queued posts."""
    components = _load(config)
    try:
        items = components.publisher.get_queue(status)
    except ValueError:
        print(f"❌ Unknown status: {status}")
        raise typer.Exit(code=2)

    _print_header(f"📋 QUEUE ({status}): {len(items)} items")
    for item in items:
        _print_queue_item(item)
    print()


@cli.command()
def approve(queue_id: str, config: Path = ConfigOption) -> None:
    """Publish a pending queue item."""
    components = _load(config)
    try:
        result = asyncio.run(components.publisher.publish_from_queue(queue_id))
    except PipelineError as e:
        print(f"❌ {type(e).__name__}: {e}")
        raise typer.Exit(code=1)
    print(f"✅ Published {queue_id}: {result.url or result.post_id}")


@cli.command()
def reject(queue_id: str, config: Path = ConfigOption) -> None:
    """Reject a pending queue item."""
    components = _load(config)
    try:
        components.publisher.reject(queue_id)
    except PipelineError as e:
        print(f"❌ {type(e).__name__}: {e}")
        raise typer.Exit(code=1)
    print(f"✓ Rejected {queue_id}")


@cli.command()
def remove(queue_id: str, config: Path = ConfigOption) -> None:
    """Delete a queue item regardless of status."""
    components = _load(config)
    if not components.publisher.remove_from_queue(queue_id):
        print(f"❌ Queue item {queue_id} not found")
        raise typer.Exit(code=1)
    print(f"✓ Removed {queue_id}")


@cli.command()
def health(config: Path = ConfigOption) -> None:
    """Check every external capability."""
    components = _load(config)
    service = HealthService(
        {
            "github": components.source,
            "enrichment": components.enricher,
            "generation": components.content_generator,
            "images": components.image_selector or ImageSelector(),
            "publishing": components.publisher,
        }
    )
    reports = asyncio.run(service.check())

    _print_header("🩺 HEALTH")
    for name, report in reports.items():
        print(f"  {STATUS_ICONS[report.status]} {name}: {report.status.value} {report.message}")
    overall = service.overall(reports)
    print(f"\nOverall: {overall.value}\n")
    if overall is HealthStatus.UNHEALTHY:
        raise typer.Exit(code=1)


@cli.command()
def history(
    config: Path = ConfigOption,
    limit: int = typer.Option(10, "--limit", help="Number of executions to show"),
) -> None:
    """Show recent executions and ledger statistics."""
    components = _load(config)
    ledger = components.ledger
    stats = ledger.get_stats()

    _print_header("🗂️  HISTORY")
    print(f"  • Processed signals: {stats['total_processed']}")
    for kind, count in stats["by_kind"].items():
        print(f"    {kind}: {count}")

    print("\nRecent executions:")
    for execution in ledger.get_recent_executions(limit):
        details = execution.get("details") or {}
        summary = ", ".join(f"{k}={v}" for k, v in details.items())
        print(f"  {execution['timestamp']} {execution['workflow']} {execution['status']} {summary}")
    print()


def app() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    app()
