"""
Domain services and the document store they persist to
"""
