"""Domain data for Michishirube."""
