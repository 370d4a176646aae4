"""Click subcommands for bumpwise."""
