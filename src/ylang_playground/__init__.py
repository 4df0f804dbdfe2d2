"""Y Language playground compilation orchestration engine."""
