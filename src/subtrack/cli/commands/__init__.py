"""Subcommand groups for the subtrack CLI."""
