"""Service catalog and category tree"""
