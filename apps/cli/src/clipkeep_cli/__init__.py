"""Command-line front end for the clipkeep clipboard history."""
