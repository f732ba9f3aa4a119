"""Web front end: JSON API and dashboard."""
