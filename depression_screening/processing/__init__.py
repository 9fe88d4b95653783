"""Measure engine: temporal predicates, code matchers, categorizer, aggregator."""
