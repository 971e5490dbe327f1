"""Custom exceptions for the StoreManager application."""


class StoreError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(StoreError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """Raised when user input is rejected before any write happens."""
    def __init__(self, message, errors=None):
        payload = {'errors': list(errors)} if errors else None
        super().__init__(message, 400, payload)
        self.errors = list(errors or [])


class NotFoundError(StoreError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available):
        message = f"Insufficient stock for {product_name}: requested {int(required)}, available {int(available)}"
        super().__init__(message, status_code=409, payload={
            'product': product_name,
            'requested': int(required),
            'available': int(available),
        })
        self.product_name = product_name
        self.required = required
        self.available = available


class CheckoutError(StoreError):
    """Raised when a sale could not be completed and was rolled back."""
    def __init__(self, message="The sale could not be completed. Please try again."):
        super().__init__(message, 500)


class UnauthorizedError(StoreError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)
