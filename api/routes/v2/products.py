"""
api/routes/v2/products.py -- Product catalog routes.

Routes:
  GET    /products        -- list all products (any authenticated caller)
  GET    /products/{id}   -- one product (any authenticated caller)
  POST   /products        -- create (admin)
  PUT    /products/{id}   -- partial update (admin)
  DELETE /products/{id}   -- delete; 204 with no body (admin)

The repository behind request.app.state.products is whichever backend the
lifespan wired in; handlers depend only on the ProductRepository contract.
Handlers are sync so repository locks are taken on worker threads, never on
the event loop.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import ProductFields, ProductListResponse, ProductOut, ProductResponse
from auth.dependencies import get_current_claims, require_admin
from catalog.store import ProductRepository

# Every product route requires a valid bearer token. Router-level dependency
# applies to every route registered on this router; write routes add
# require_admin on top.
router = APIRouter(dependencies=[Depends(get_current_claims)])


@router.get("/products", response_model=ProductListResponse)
def list_products(request: Request) -> ProductListResponse:
    """Return every product in insertion order."""
    repo: ProductRepository = request.app.state.products
    products = repo.list()
    return ProductListResponse(total=len(products), data=[ProductOut.from_product(p) for p in products])


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(request: Request, product_id: int) -> ProductResponse:
    repo: ProductRepository = request.app.state.products
    return ProductResponse(data=ProductOut.from_product(repo.get(product_id)))


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_product(request: Request, body: Optional[ProductFields] = None) -> ProductResponse:
    """Add a product. name, description, price and stock are all required; 0 is a valid price or stock."""
    repo: ProductRepository = request.app.state.products
    fields = body.model_dump() if body is not None else {}
    product = repo.create(fields)
    return ProductResponse(data=ProductOut.from_product(product))


@router.put(
    "/products/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def update_product(request: Request, product_id: int, body: Optional[ProductFields] = None) -> ProductResponse:
    """Apply the fields present in the body and return the full updated product.

    No body, or a body with no usable field, leaves the product unchanged.
    """
    repo: ProductRepository = request.app.state.products
    fields = body.model_dump(exclude_unset=True) if body is not None else {}
    product = repo.update(product_id, fields)
    return ProductResponse(data=ProductOut.from_product(product))


@router.delete("/products/{product_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_product(request: Request, product_id: int) -> Response:
    repo: ProductRepository = request.app.state.products
    repo.delete(product_id)
    return Response(status_code=204)
