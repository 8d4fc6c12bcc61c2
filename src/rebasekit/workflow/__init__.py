"""Automatic rebase resolution as a pydantic-graph state machine."""
