"""Experience, levels and badges."""
