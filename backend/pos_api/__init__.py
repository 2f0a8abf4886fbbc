"""
POS REST API: routers, services, repositories and models.
"""
