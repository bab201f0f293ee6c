"""ORM models and declarative base."""
