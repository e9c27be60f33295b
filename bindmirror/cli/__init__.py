"""
Click commands for the bindmirror CLI.
"""
