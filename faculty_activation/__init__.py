"""Faculty account activation flow."""
