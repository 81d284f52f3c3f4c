"""
dep-updater: bulk dependency-version updates across many git projects.

For every enabled project under a workspace directory, the tool moves
the clone onto a working branch, rewrites the pinned versions in its
package.json and optionally commits and pushes the result.
"""

__version__ = "0.1.0"
