"""Driver accounts: registration and profile lookup."""
