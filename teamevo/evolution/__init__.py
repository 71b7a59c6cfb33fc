"""Genetic search over teams: seeding, scoring, operators and the run loop."""
