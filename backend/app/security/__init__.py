"""Authorization and logging safeguards for the booking API."""
