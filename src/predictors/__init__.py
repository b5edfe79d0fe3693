"""Oracle and Mastermind prediction engines."""
