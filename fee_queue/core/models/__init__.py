from fee_queue.core.models.counter import Counter
from fee_queue.core.models.fee_type import FeeType
from fee_queue.core.models.payment import Payment

__all__ = [
    "Counter",
    "FeeType",
    "Payment",
]
