"""
bindmirror — Mirror selected paths from a source root into a target root
with bind mounts, and keep the declaration and the live mount table in sync.
"""

__version__ = "0.1.0"
