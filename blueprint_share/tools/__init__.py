"""Operator tooling for Blueprint Share data files."""
