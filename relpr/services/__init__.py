"""Services layer: release PR reconciliation."""
