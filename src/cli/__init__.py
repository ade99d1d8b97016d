"""Command-line interface: `ledger` command group, terminal output, structured events."""
