"""Scheduling analytics over a parsed Calendar."""
