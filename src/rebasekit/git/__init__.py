"""git rebase state, conflict scanning and marker handling."""
