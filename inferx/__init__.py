"""InferX — streaming chat-response aggregation and markdown segmentation."""

__version__ = "0.1.0"
