"""Durable store boundary used by the tag engine and the aggregation views."""
