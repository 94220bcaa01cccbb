"""
Statistics for probe runs.

Calculates per-address reachability figures:
- Loss: share of failed probes, as a whole percent
- Latency: mean, min and max over successful probes only
- Jitter: mean difference between consecutive successful probes
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .models import ProbeSample, ProviderResult


@dataclass(frozen=True)
class ProbeSummary:
    """Aggregated figures for one probe run."""
    sent: int
    received: int
    loss_percent: float
    avg_latency_ms: Optional[float]
    min_latency_ms: Optional[float]
    max_latency_ms: Optional[float]
    jitter_ms: Optional[float]


class StatisticsEngine:
    """Calculates statistics from probe samples."""

    @staticmethod
    def loss_percent(failed: int, total: int) -> float:
        """
        Loss rounded to the nearest whole percent.

        Zero probes sent counts as total loss.
        """
        if total <= 0:
            return 100.0
        # halves round to even: 12.5 -> 12, 37.5 -> 38
        return float(round(100 * failed / total))

    @staticmethod
    def summarize_samples(samples: list[ProbeSample]) -> ProbeSummary:
        """
        Summarize a probe run.

        Args:
            samples: Samples returned by a prober

        Returns:
            ProbeSummary; latency fields are None when no probe succeeded
        """
        successful = [s.elapsed_ms for s in samples if s.ok and s.elapsed_ms is not None]
        failed = len(samples) - len(successful)
        loss = StatisticsEngine.loss_percent(failed, len(samples))

        if not successful:
            return ProbeSummary(
                sent=len(samples),
                received=0,
                loss_percent=loss,
                avg_latency_ms=None,
                min_latency_ms=None,
                max_latency_ms=None,
                jitter_ms=None,
            )

        latencies = np.array(successful)
        if len(latencies) > 1:
            jitter = float(np.mean(np.abs(np.diff(latencies))))
        else:
            jitter = 0.0

        return ProbeSummary(
            sent=len(samples),
            received=len(successful),
            loss_percent=loss,
            avg_latency_ms=float(np.mean(latencies)),
            min_latency_ms=float(np.min(latencies)),
            max_latency_ms=float(np.max(latencies)),
            jitter_ms=jitter,
        )

    @staticmethod
    def rank_results(results: list[ProviderResult]) -> list[ProviderResult]:
        """
        Order reachable providers from fastest to slowest.

        Providers without any successful probe are left out. Ties on
        latency are broken by lower loss, then by original position.
        """
        reachable = [r for r in results if r.avg_latency_ms is not None]
        return sorted(reachable, key=lambda r: (r.avg_latency_ms, r.loss_percent))
