"""
Application services.

- base_service: generic CRUD service with validation hooks
- domain: one service per business area
- excel: openpyxl workbooks for catalog import/export and sales
"""

from .base_service import BaseCRUDService, BaseService

__all__ = ["BaseCRUDService", "BaseService"]
