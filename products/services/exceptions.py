# products/services/exceptions.py

from rest_framework import status

from backend.errors import DomainError


class CatalogError(DomainError):
    code = "CATALOG_ERROR"


class ProductNotFoundError(CatalogError):
    code = "PRODUCT_NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class VariantNotFoundError(CatalogError):
    code = "VARIANT_NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class InsufficientStockError(CatalogError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, message: str = "", *, sku: str = "", requested: int = 0, available: int = 0):
        self.sku = sku
        self.requested = requested
        self.available = available
        super().__init__(
            message
            or f"Insufficient stock for {sku}. Requested: {requested}, Available: {available}"
        )


class StockRestorationError(CatalogError):
    code = "STOCK_RESTORATION_FAILED"
