"""Domain models and errors for the health log."""
