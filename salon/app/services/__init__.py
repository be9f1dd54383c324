"""Business services for the salon application.

This package provides:
- The admission gate (rate limit + anti-spam heuristics) for public bookings
- Financial aggregation with progressive tax
- Email and SMS notifications, day-before reminders
- Working hours and vacation schedule helpers
"""
