"""Reviews and rating aggregation"""
