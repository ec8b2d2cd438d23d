"""Runs the compatibility checks against a website."""

import asyncio
import logging
from typing import List, Optional, Sequence

from compatcheck.checks import BaseCheck, LibraryVersionCheck, MarkupConsistencyCheck
from compatcheck.models import CheckResult, Website

logger = logging.getLogger(__name__)


class CompatibilityAuditor:
    """Runs a set of independent checks concurrently."""

    def __init__(self, checks: Optional[Sequence[BaseCheck]] = None):
        """Initialize the auditor.

        Args:
            checks: Checks to run (markup and library checks when None)
        """
        if checks is None:
            checks = [MarkupConsistencyCheck(), LibraryVersionCheck()]
        self.checks: List[BaseCheck] = list(checks)

    async def audit(self, website: Website) -> List[CheckResult]:
        """
        Run every check against a website.

        Args:
            website: Page fetched by the crawler

        Returns:
            One CheckResult per check, in check order

        Raises:
            CompatCheckError: If any check fails to complete
        """
        logger.info(f"Auditing {website.url} with {len(self.checks)} checks")
        results = await asyncio.gather(*(check.check(website) for check in self.checks))

        failed = [result.test_name for result in results if not result.passed]
        if failed:
            logger.info(f"{website.url}: failed {', '.join(failed)}")

        return list(results)
