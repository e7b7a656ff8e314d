"""Use cases — the vertical slices behind each CLI command."""
