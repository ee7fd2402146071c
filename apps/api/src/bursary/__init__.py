"""Bursary Portal API."""
