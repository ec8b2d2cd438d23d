"""Common contract for compatibility checks."""

from abc import ABC, abstractmethod

from compatcheck.models import CheckResult, Website


class BaseCheck(ABC):
    """A check run against one website, producing a CheckResult."""

    test_name: str = ""

    @abstractmethod
    async def check(self, website: Website) -> CheckResult:
        """Run the check.

        Args:
            website: Page fetched by the crawler

        Returns:
            CheckResult for the page

        Raises:
            CompatCheckError: If the check cannot be completed
        """
