"""
Services layer for AdLens.

Business logic for turning ad performance records into creative tables.
"""
