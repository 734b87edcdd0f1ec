"""
facetstore CLI

Commands:
- facetstore table create - Create a facet table
- facetstore state / records - Inspect a facet instance
- facetstore version
"""
