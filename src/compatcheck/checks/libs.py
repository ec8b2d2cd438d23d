"""Detection of outdated or banned JavaScript libraries."""

import asyncio
import logging
from typing import Optional

from compatcheck.checks.base import BaseCheck
from compatcheck.constants import LIBS_TEST_NAME
from compatcheck.libraries import LibraryRegistry, get_active_registry
from compatcheck.models import CheckResult, Script, VersionInfo, Website

logger = logging.getLogger(__name__)


class LibraryVersionCheck(BaseCheck):
    """Reports the first script carrying a library that needs an update."""

    test_name = LIBS_TEST_NAME

    def __init__(self, registry: Optional[LibraryRegistry] = None):
        """Initialize the check.

        Args:
            registry: Libraries to look for (the active registry at call time
                when None)
        """
        self.registry = registry

    def check_script(
        self, script: Script, website: Website, registry: LibraryRegistry
    ) -> Optional[VersionInfo]:
        """Find the first library in a script that needs an update.

        Args:
            script: Script resource of the page
            website: Page the script belongs to
            registry: Libraries to look for

        Returns:
            VersionInfo annotated with the script URL and line number, or None
        """
        if script.is_inline:
            return None

        text = script.content or ""
        for library in registry:
            if library.skip:
                continue

            result = library.check(text)
            if result and result.needs_update:
                result.url = script.js_url
                result.line_number = website.line_number_of(script.js_url)
                return result

        return None

    async def check(self, website: Website) -> CheckResult:
        # Let other scheduled checks start before scanning
        await asyncio.sleep(0)

        registry = self.registry if self.registry is not None else get_active_registry()
        result = CheckResult(test_name=self.test_name, passed=True, data=[], url=website.url)

        for script in website.js:
            violation = self.check_script(script, website, registry)
            if violation:
                logger.info(
                    f"{website.url}: {violation.name} {violation.version} "
                    f"needs update (min {violation.min_version}) in {violation.url}"
                )
                result.passed = False
                result.data = violation
                break

        return result
