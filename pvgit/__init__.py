"""pvgit - Pivotal-style story tracking for your git workflow.

A Python CLI that ties git branches to tracked stories: pick a story, branch
from it, commit against it, and move it along as pull requests are opened
and landed.
"""

__version__ = "0.1.0"
__author__ = "pvgit contributors"
