from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Security, status
from pydantic import ValidationError

from app.adapters.document_records import (
    metric_from_document,
    product_from_document,
    sale_from_document,
)
from app.api.dependencies import get_dashboard_service
from app.core.rate_limit import configured_rate_limit, limiter
from app.core.security import get_user_id
from app.domain.models import (
    DashboardData,
    DocumentImport,
    ImportResult,
    MetricCreate,
    MetricRecord,
    ProductCreate,
    ProductRecord,
    ProductUpdate,
    SaleCreate,
    SaleRecord,
)
from app.domain.ports import ProductNotFoundError
from app.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

UserDep = Annotated[str, Security(get_user_id)]
ServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]


@router.get("/", response_model=DashboardData)
@limiter.limit(configured_rate_limit)
async def get_dashboard(request: Request, user_id: UserDep, service: ServiceDep) -> DashboardData:
    """
    KPIs, Verkaufsdiagramm, Margen und Empfehlungen des Users.
    Empfehlungen kommen aus dem Cache, solange sich die Daten nicht geändert haben.
    """
    return await service.get_dashboard(user_id)


@router.get("/products", response_model=list[ProductRecord])
async def list_products(user_id: UserDep, service: ServiceDep) -> list[ProductRecord]:
    return await service.list_products(user_id)


@router.post("/products", response_model=ProductRecord, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate, user_id: UserDep, service: ServiceDep
) -> ProductRecord:
    return await service.add_product(user_id, payload)


@router.patch("/products/{product_id}", response_model=ProductRecord)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    user_id: UserDep,
    service: ServiceDep,
) -> ProductRecord:
    try:
        return await service.update_product(user_id, product_id, payload)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, user_id: UserDep, service: ServiceDep) -> None:
    if not await service.delete_product(user_id, product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found.")


@router.post("/sales", response_model=SaleRecord, status_code=status.HTTP_201_CREATED)
async def create_sale(payload: SaleCreate, user_id: UserDep, service: ServiceDep) -> SaleRecord:
    return await service.add_sale(user_id, payload)


@router.post("/metrics", response_model=MetricRecord, status_code=status.HTTP_201_CREATED)
async def create_metric(
    payload: MetricCreate, user_id: UserDep, service: ServiceDep
) -> MetricRecord:
    return await service.add_metric(user_id, payload)


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(configured_rate_limit)
async def import_documents(
    request: Request, payload: DocumentImport, user_id: UserDep, service: ServiceDep
) -> ImportResult:
    """
    Importiert Dokumente mit abweichenden Feldnamen (selling_price, material_cost, ...).
    """
    try:
        products = [product_from_document(d) for d in payload.products]
        sales = [sale_from_document(d) for d in payload.sales]
        metrics = [metric_from_document(d) for d in payload.metrics]
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    counts = await service.import_records(user_id, products, sales, metrics)
    return ImportResult(**counts)
