"""Satisfaction survey scoring, escalation and analytics API."""
