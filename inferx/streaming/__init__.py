"""InferX streaming layer: flush-gated aggregation and the per-message consumer."""

from inferx.streaming.aggregator import StreamAggregator
from inferx.streaming.consumer import StreamConsumer, UpdateCallback

__all__ = ["StreamAggregator", "StreamConsumer", "UpdateCallback"]
