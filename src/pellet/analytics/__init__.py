"""Read-only derived views over the tag history and user roster."""
