"""Key-value stores for tickets, edits, reviews and comment links."""
