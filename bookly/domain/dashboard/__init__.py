"""Role dashboards built from database aggregates"""
