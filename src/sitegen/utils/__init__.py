"""Shared utilities (logging, errors, resilience, async bridging)."""
