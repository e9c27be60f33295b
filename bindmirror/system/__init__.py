"""
Host access — live mount table, mount control and filesystem primitives.
"""
