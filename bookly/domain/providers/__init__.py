"""Public provider directory"""
