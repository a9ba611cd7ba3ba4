"""JSONL telemetry for evaluation runs."""
