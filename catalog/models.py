"""
catalog/models.py -- Domain dataclass for the product catalog.

Pure data container with zero logic. Presence checks, id assignment and
partial updates live in catalog/store.py.
"""

from dataclasses import dataclass
from typing import Optional

# Fields a caller must supply on create and may supply on update, in the
# order they are reported in MissingFieldError.
PRODUCT_FIELDS = ("name", "description", "price", "stock")


@dataclass
class Product:
    """A sellable item.

    price and stock are never negative; the API request models reject
    negative values before they reach a repository.

    id is None until a repository assigns one.
    """

    name: str
    description: str
    price: float
    stock: int
    id: Optional[int] = None
