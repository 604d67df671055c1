"""CLI commands for quotaprobe."""

# Command modules register themselves with the main app when imported
# from quotaprobe.cli.app, so nothing is re-exported here.
