"""Pellet tag engine: tag submissions, progression, badges and aggregated views."""
