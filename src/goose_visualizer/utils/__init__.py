"""Utility helpers for goose_visualizer."""
