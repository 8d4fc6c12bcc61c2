"""AI-assisted git rebase conflict resolution with human approval."""
