"""Audit aggregation and failure notification for multi-stage agent pipelines."""

__version__ = "0.1.0"
