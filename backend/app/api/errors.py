from __future__ import annotations

from fastapi import HTTPException, status

from app.domain.services.cart_store import CartError, CartLockedError, LineNotFoundError, UnavailableDishError
from app.domain.services.discount import DiscountError
from app.domain.services.eligibility import PromotionError, PromotionNotEligibleError, PromotionNotFoundError
from app.domain.services.pricing import PricingError, UnavailableToppingError

# Every business error of the core is recoverable: it maps to a 4xx, never a 500.
DOMAIN_ERRORS: tuple[type[Exception], ...] = (PricingError, CartError, PromotionError, DiscountError, ValueError)


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, (LineNotFoundError, PromotionNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(
        error,
        (UnavailableDishError, UnavailableToppingError, DiscountError, PromotionNotEligibleError, CartLockedError),
    ):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))
