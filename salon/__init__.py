"""Salon booking and administration service."""
