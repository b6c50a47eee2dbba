"""Utilities package for the Kitchen Back Office application."""
