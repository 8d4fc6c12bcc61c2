#!/usr/bin/env python3
"""rebasekit - AI-assisted git rebase conflict resolution.

In-tree launcher; an installed package provides the ``rebasekit``
console script instead.
"""

from rebasekit.cli import main

if __name__ == "__main__":
    main()
