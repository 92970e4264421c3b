"""In-memory catalogue and query engine."""
