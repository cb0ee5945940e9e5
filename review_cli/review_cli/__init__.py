"""Command-line front end for the SQL review engine."""
