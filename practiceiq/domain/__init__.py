"""Domain entities of the adaptive learning engine."""
