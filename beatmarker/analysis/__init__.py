"""Onset detection and peak picking."""
