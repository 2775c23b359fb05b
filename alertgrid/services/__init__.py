"""Grid generation services."""
