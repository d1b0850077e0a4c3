from typing import Optional


class ShopError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(ShopError):
    status_code = 400


class NotFound(ShopError):
    status_code = 404


class OutOfStock(ShopError):
    status_code = 400

    def __init__(self, product_name: Optional[str] = None):
        if product_name:
            message = f'Insufficient stock for "{product_name}"'
        else:
            message = "Insufficient stock"
        super().__init__(message)
        self.product_name = product_name
