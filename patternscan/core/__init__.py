"""Typed domain core shared by catalog, scanner and report layers."""
