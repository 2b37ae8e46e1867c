"""GitHub release notes collector.

Gathers recently merged pull requests or the issues of a milestone into
a release notes file, and appends prepared notes to existing releases.
"""

__version__ = "0.1.0"
