"""FastAPI endpoints for catalogue items."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import current_identity, request_context
from storefront.catalogue.api.schemas import CreateItemRequest, ItemIdResponse, ItemResponse, UpdateItemRequest
from storefront.catalogue.item.item import Item
from storefront.catalogue.item.management import CreateItem, DeleteItem, UpdateItem, get_item, list_items
from storefront.context import RequestContext


def item_response(item: Item) -> ItemResponse:
    return ItemResponse(
        id=str(item.id),
        title=item.title,
        description=item.description,
        price=item.price,
        image=item.image,
        large_image=item.large_image,
        user_id=str(item.user_id),
    )


item_router = APIRouter(prefix="/items", tags=["items"])


@item_router.get("", response_model=list[ItemResponse])
async def get_items() -> list[ItemResponse]:
    return [item_response(item) for item in list_items()]


@item_router.get("/{item_id}", response_model=ItemResponse)
async def get_item_detail(item_id: str) -> ItemResponse:
    return item_response(get_item(item_id))


@item_router.post("", status_code=201, response_model=ItemIdResponse)
async def create_item(body: CreateItemRequest, context: RequestContext = Depends(request_context)) -> ItemIdResponse:
    command = CreateItem(
        actor_id=current_identity(context).user_id,
        title=body.title,
        description=body.description,
        price=body.price,
        image=body.image,
        large_image=body.large_image,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=result)


@item_router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    body: UpdateItemRequest,
    context: RequestContext = Depends(request_context),
) -> ItemResponse:
    command = UpdateItem(
        actor_id=current_identity(context).user_id,
        item_id=item_id,
        title=body.title,
        description=body.description,
        price=body.price,
        image=body.image,
        large_image=body.large_image,
    )
    current_domain.process(command, asynchronous=False)
    return item_response(get_item(item_id))


@item_router.delete("/{item_id}", response_model=ItemIdResponse)
async def delete_item(item_id: str, context: RequestContext = Depends(request_context)) -> ItemIdResponse:
    command = DeleteItem(actor_id=current_identity(context).user_id, item_id=item_id)
    current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=item_id)
