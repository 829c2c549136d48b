"""
Checkout business-rule failures.
Each carries the HTTP status and the machine-readable code the storefront
client branches on; views render them with CheckoutError.as_response_data().
"""

from rest_framework import status


class CheckoutError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code        = "CHECKOUT_ERROR"
    message     = "Checkout failed."

    def __init__(self, message=None, **extra):
        self.message = message or self.message
        self.extra   = extra
        super().__init__(self.message)

    def as_response_data(self) -> dict:
        return {"success": False, "code": self.code, "message": self.message, **self.extra}


class EmailNotVerified(CheckoutError):
    status_code = status.HTTP_403_FORBIDDEN
    code        = "EMAIL_NOT_VERIFIED"
    message     = "Please verify your email address before placing an order."


class InvalidPhone(CheckoutError):
    code    = "INVALID_PHONE"
    message = "Invalid phone number. Use a Safaricom number like 0712345678."


class UnsupportedPaymentMethod(CheckoutError):
    code    = "UNSUPPORTED_PAYMENT_METHOD"
    message = "Only M-Pesa payments are supported."


class ProductNotFound(CheckoutError):
    status_code = status.HTTP_404_NOT_FOUND
    code        = "PRODUCT_NOT_FOUND"
    message     = "Product not found."


class InsufficientStock(CheckoutError):
    code    = "INSUFFICIENT_STOCK"
    message = "Insufficient stock."


class InvalidCoupon(CheckoutError):
    code    = "INVALID_COUPON"
    message = "Invalid or expired coupon."


class CouponMinimumNotMet(CheckoutError):
    code    = "COUPON_MIN_AMOUNT"
    message = "Order total is below the coupon minimum."


class CouponLimitReached(CheckoutError):
    code    = "COUPON_LIMIT_REACHED"
    message = "This coupon has reached its usage limit."


class InvalidShippingMethod(CheckoutError):
    code    = "INVALID_SHIPPING_METHOD"
    message = "Shipping method not available."


class TotalMismatch(CheckoutError):
    code    = "TOTAL_MISMATCH"
    message = "Order total has changed. Please review your cart."


class PaymentInitiationFailed(CheckoutError):
    code    = "PAYMENT_INITIATION_FAILED"
    message = "Payment processing failed. Please try again."


class OrderActionError(CheckoutError):
    """Lifecycle action (cancel, status change) not allowed for this order."""
    code    = "ORDER_ACTION_NOT_ALLOWED"
    message = "This action is not allowed for this order."


class NotOrderOwner(OrderActionError):
    status_code = status.HTTP_403_FORBIDDEN
    message     = "You can only cancel your own orders."
