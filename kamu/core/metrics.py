"""
In-process metrics for the client runtime.

Prometheus-compatible counters and histograms for:
- Cart mutations by operation
- Checkout attempts by outcome and payment method
- Checkout duration
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Union

LabelKey = tuple[str, ...]


@dataclass
class Sample:
    """One exported line: optional suffix, labels and value."""

    value: float
    labels: dict[str, str] = field(default_factory=dict)
    suffix: str = ""


class _LabelledMetric:
    kind = "untyped"

    def __init__(self, name: str, description: str, labels: list[str] | None = None):
        self.name = name
        self.description = description
        self.label_names = tuple(labels or ())

    def _key(self, labels: dict[str, str]) -> LabelKey:
        unknown = set(labels) - set(self.label_names)
        if unknown:
            raise ValueError(f"{self.name}: unknown labels {sorted(unknown)}")
        return tuple(str(labels.get(name, "")) for name in self.label_names)

    def _labels(self, key: LabelKey) -> dict[str, str]:
        return dict(zip(self.label_names, key))

    def samples(self) -> list[Sample]:
        raise NotImplementedError


class Counter(_LabelledMetric):
    """Monotonic counter per label set."""

    kind = "counter"

    def __init__(self, name: str, description: str, labels: list[str] | None = None):
        super().__init__(name, description, labels)
        self._values: dict[LabelKey, float] = defaultdict(float)

    def inc(self, amount: float = 1, **labels: str) -> None:
        if amount < 0:
            raise ValueError("Counters only go up")
        self._values[self._key(labels)] += amount

    def get(self, **labels: str) -> float:
        return self._values.get(self._key(labels), 0)

    def samples(self) -> list[Sample]:
        return [Sample(value, self._labels(key)) for key, value in self._values.items()]


class Histogram(_LabelledMetric):
    """Cumulative-bucket histogram per label set."""

    kind = "histogram"
    DEFAULT_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30)

    def __init__(
        self,
        name: str,
        description: str,
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ):
        super().__init__(name, description, labels)
        self.buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        self._bucket_counts: dict[LabelKey, list[int]] = {}
        self._sums: dict[LabelKey, float] = defaultdict(float)
        self._counts: dict[LabelKey, int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        counts = self._bucket_counts.setdefault(key, [0] * len(self.buckets))
        for index, bound in enumerate(self.buckets):
            if value <= bound:
                counts[index] += 1
        self._sums[key] += value
        self._counts[key] += 1

    def count(self, **labels: str) -> int:
        return self._counts.get(self._key(labels), 0)

    def get_avg(self, **labels: str) -> float:
        key = self._key(labels)
        total = self._counts.get(key, 0)
        return self._sums[key] / total if total else 0.0

    def samples(self) -> list[Sample]:
        result = []
        for key, counts in self._bucket_counts.items():
            labels = self._labels(key)
            for bound, hits in zip(self.buckets, counts):
                result.append(Sample(hits, {**labels, "le": str(bound)}, "_bucket"))
            result.append(Sample(self._counts[key], {**labels, "le": "+Inf"}, "_bucket"))
            result.append(Sample(self._sums[key], labels, "_sum"))
            result.append(Sample(self._counts[key], labels, "_count"))
        return result


Metric = Union[Counter, Histogram]


class MetricsRegistry:
    """Named metrics of one runtime; tests build their own."""

    def __init__(self):
        self._metrics: dict[str, Metric] = {}

        self.cart_mutations_total = self.counter(
            "kamu_cart_mutations_total", "Cart mutations applied", ["op"]
        )
        self.checkout_attempts_total = self.counter(
            "kamu_checkout_attempts_total",
            "Checkout attempts by terminal outcome",
            ["outcome", "method"],
        )
        self.checkout_duration = self.histogram(
            "kamu_checkout_duration_seconds", "Checkout attempt duration", ["method"]
        )

    def counter(self, name: str, description: str, labels: list[str] | None = None) -> Counter:
        metric = self._metrics.setdefault(name, Counter(name, description, labels))
        if not isinstance(metric, Counter):
            raise ValueError(f"{name} is already registered as a {metric.kind}")
        return metric

    def histogram(
        self,
        name: str,
        description: str,
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ) -> Histogram:
        metric = self._metrics.setdefault(name, Histogram(name, description, labels, buckets))
        if not isinstance(metric, Histogram):
            raise ValueError(f"{name} is already registered as a {metric.kind}")
        return metric

    def export_prometheus(self) -> str:
        """Render every metric in the Prometheus text exposition format."""
        lines = []
        for name, metric in self._metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.kind}")
            for sample in metric.samples():
                series = f"{name}{sample.suffix}"
                if sample.labels:
                    label_str = ",".join(f'{k}="{v}"' for k, v in sample.labels.items())
                    series = f"{series}{{{label_str}}}"
                lines.append(f"{series} {sample.value}")
            lines.append("")
        return "\n".join(lines)


metrics = MetricsRegistry()
