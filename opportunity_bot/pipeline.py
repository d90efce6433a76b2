"""
Discovery pipeline.

One scan walks every category and source in configured order, posts each
new opportunity and updates the dedup store and counters.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from opportunity_bot.config import FeedSource
from opportunity_bot.formatter import add_branding, format_opportunity
from opportunity_bot.models import Category
from opportunity_bot.notifier import Publisher
from opportunity_bot.rss_parser import FeedFetcher, FetchResult
from opportunity_bot.state import BotState

logger = logging.getLogger(__name__)


@dataclass
class ScanSummary:
    """
    Result of one scan.

    Attributes
    ----------
    started_at : datetime
        When the scan began.
    finished_at : datetime | None
        When the scan ended.
    posted : int
        Opportunities processed during the scan.
    failed_sources : list[FetchResult]
        Fetch results for sources that could not be read.
    """

    started_at: datetime
    finished_at: datetime | None = None
    posted: int = 0
    failed_sources: list[FetchResult] = field(default_factory=list)


class DiscoveryPipeline:
    """
    Fetch, format and post opportunities from every configured source.

    Identifiers are marked as seen once delivery has been attempted, even
    when every destination failed, so a broken channel never leads to
    repeated posts on later scans.
    """

    def __init__(
        self,
        sources: dict[Category, list[FeedSource]],
        fetcher: FeedFetcher,
        publisher: Publisher,
        state: BotState,
        item_delay: float = 5.0,
    ):
        self.sources = sources
        self.fetcher = fetcher
        self.publisher = publisher
        self.state = state
        self.item_delay = item_delay

    async def run_scan(self) -> ScanSummary | None:
        """
        Run one full scan.

        Returns
        -------
        ScanSummary | None
            Summary of the scan, or None if another scan was still running.
        """
        if not self.state.try_begin_scan():
            logger.warning("Scan already in progress, skipping")
            return None

        summary = ScanSummary(started_at=datetime.now(timezone.utc))
        logger.info("Starting scan")
        try:
            for category, sources in self.sources.items():
                logger.info("Category: %s", category.value.upper())
                for source in sources:
                    result = await self.fetcher.fetch(source, category, self.state.seen)
                    if not result.ok:
                        summary.failed_sources.append(result)
                        continue
                    await self._post_all(result, summary)
        finally:
            self.state.end_scan()

        summary.finished_at = datetime.now(timezone.utc)
        self.state.stats.record_scan(summary.finished_at)
        logger.info(
            "Scan complete: %d posted, %d source(s) failed",
            summary.posted,
            len(summary.failed_sources),
        )
        return summary

    async def _post_all(self, result: FetchResult, summary: ScanSummary) -> None:
        for opportunity in result.opportunities:
            # Another source may have yielded the same item earlier in this scan
            if opportunity.identifier in self.state.seen:
                continue
            if summary.posted and self.item_delay > 0:
                await asyncio.sleep(self.item_delay)

            message = add_branding(format_opportunity(opportunity))
            report = await self.publisher.publish(message)
            if not report.any_delivered:
                logger.warning(
                    "'%s' reached no destination, marking as seen anyway",
                    opportunity.title[:50],
                )

            self.state.seen.add(opportunity.identifier)
            self.state.stats.record_post(opportunity.category)
            summary.posted += 1
