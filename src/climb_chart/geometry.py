import numpy as np

from climb_chart.models import ClimbRecord
from climb_chart.scales import ScaleState


class GeometryProjector:
    """Projects climb samples through the chart scales into path coordinates."""

    @staticmethod
    def project(record: ClimbRecord, scales: ScaleState) -> list[tuple[float, float]]:
        """Map each (distance, altitude) sample of `record` to an (x, y) point.

        The output has one point per sample, in sample order, so the last
        point is where the climb's name label belongs.

        Raises:
            ValueError: If the record has no samples.
        """
        if not record.is_loaded:
            raise ValueError(f"Climb {record.climb_id} ({record.name}) has no samples")
        samples = np.asarray(record.samples, dtype=float)
        xs = scales.distance(samples[:, 0])
        ys = scales.altitude(samples[:, 1])
        return list(zip(xs.tolist(), ys.tolist()))

    def reproject_all(self, records: list[ClimbRecord], scales: ScaleState) -> None:
        # Hidden records are projected too so they can be revealed as-is
        for record in records:
            record.projected_path = self.project(record, scales)
