"""One-off maintenance tasks run from the command line."""
