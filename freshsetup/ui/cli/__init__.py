"""Click commands, one per workflow."""
