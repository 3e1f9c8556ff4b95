"""Build health score derived from the number of issues."""

from dataclasses import dataclass

from warnings_tracker.models.issues import Severity, SeverityCounts


@dataclass(frozen=True)
class HealthDescriptor:
    """Maps issue counts to a health percentage.

    Builds with fewer than ``healthy`` issues are 100% healthy, builds with
    more than ``unhealthy`` issues are 0% healthy. Only issues of
    ``minimum_severity`` or worse are counted.
    """

    healthy: int | None = None
    unhealthy: int | None = None
    minimum_severity: Severity = Severity.LOW

    @property
    def is_enabled(self) -> bool:
        return (
            self.healthy is not None
            and self.unhealthy is not None
            and self.unhealthy > self.healthy
        )


class HealthReportBuilder:
    """Computes the health percentage of a build."""

    def __init__(self, descriptor: HealthDescriptor) -> None:
        self.descriptor = descriptor

    def compute(self, counts: SeverityCounts) -> int | None:
        """Compute the health of a build.

        Returns:
            Percentage between 0 and 100, or None if health reporting is disabled
        """
        if not self.descriptor.is_enabled:
            return None
        relevant = sum(
            counts.for_severity(s) for s in self.descriptor.minimum_severity.collect_from()
        )
        healthy = self.descriptor.healthy
        unhealthy = self.descriptor.unhealthy
        assert healthy is not None and unhealthy is not None

        if relevant < healthy:
            return 100
        if relevant > unhealthy:
            return 0
        return 100 - (relevant - healthy) * 100 // (unhealthy - healthy)
