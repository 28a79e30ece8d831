"""Presentation XML generator."""
