"""Aggregation and presentation services for ccmeter."""
