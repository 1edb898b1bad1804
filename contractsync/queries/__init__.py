"""
Syntax queries and contract-class resolution over LibCST trees
"""
