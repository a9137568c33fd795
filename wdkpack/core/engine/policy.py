"""
Tool workaround policies — WDK build ranges with known tool bugs.

Each policy is a table of build-number ranges. Updating a range when a
fixed WDK ships is a data change here, not a logic change in the
package task.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BuildNumberRange:
    """Inclusive ``start``; ``end`` is exclusive, None means open-ended."""

    start: int
    end: int | None = None
    reason: str = ""

    def contains(self, build_number: int) -> bool:
        if build_number < self.start:
            return False
        return self.end is None or build_number < self.end


@dataclass(frozen=True)
class WorkaroundPolicy:
    name: str
    ranges: tuple[BuildNumberRange, ...]

    def matching_range(self, build_number: int) -> BuildNumberRange | None:
        for r in self.ranges:
            if r.contains(build_number):
                return r
        return None


# InfVerif in these builds lacks the sample-class flag. Inside the range the
# whole InfVerif step is skipped for sample-class drivers.
# TODO: close the range once a WDK build ships InfVerif with /samples.
SKIP_INFVERIF_FOR_SAMPLES = WorkaroundPolicy(
    name="skip-infverif-for-samples",
    ranges=(
        BuildNumberRange(
            start=25798,
            reason="InfVerif does not contain the /samples flag",
        ),
    ),
)
