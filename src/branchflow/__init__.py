"""Git branching model extensions.

Features:
- Initialize a repository for the main/develop branching model
- Start, finish, publish and delete feature, bugfix, release and hotfix branches
- Long-lived support branches anchored to a tag or commit
- Version tags with configurable prefix and message template
"""

__version__ = "1.0.0"
