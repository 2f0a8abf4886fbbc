"""
HTTP routers. Thin controllers: parse the request, check the role, call
the domain service.
"""
