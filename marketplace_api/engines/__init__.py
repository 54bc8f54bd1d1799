"""
Read-side engines: recommendations and search
"""
