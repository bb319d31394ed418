from app.models.catalog_class import CatalogClass
from app.models.app_setting import AppSetting

__all__ = [
    "CatalogClass",
    "AppSetting",
]
