from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from auth import require_admin
from errors import NotFoundError, format_response
from property_service import property_service

router = APIRouter(prefix="/api/properties", tags=["Properties"])


class FeaturedUpdate(BaseModel):
    featured: bool = True


def _search_params(
    search: Optional[str] = None,
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
    bedrooms: Optional[str] = None,
    available: Optional[str] = None,
    sort_by: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "search": search,
        "min_price": min_price,
        "max_price": max_price,
        "bedrooms": bedrooms,
        "available": available,
        "sort_by": sort_by,
    }


# ---------------------------
# Public
# ---------------------------
@router.get("")
async def list_properties(params: Dict[str, Any] = Depends(_search_params)):
    properties = property_service.search(params)
    return format_response(properties, f"Retrieved {len(properties)} properties", count=len(properties))


@router.get("/featured")
async def featured_properties(limit: int = 6):
    properties = property_service.get_featured(limit)
    return format_response(properties, f"Retrieved {len(properties)} featured properties")


@router.get("/search")
async def search_properties(params: Dict[str, Any] = Depends(_search_params)):
    properties = property_service.search(params)
    return format_response(properties, f"Found {len(properties)} matching properties", count=len(properties))


@router.get("/statistics")
async def property_statistics():
    return format_response(property_service.get_statistics(), "Property statistics retrieved successfully")


@router.get("/{property_id}")
async def get_property(property_id: int):
    prop = property_service.get_by_id(property_id)
    if not prop:
        raise NotFoundError.for_resource("Property")
    return format_response(prop, "Property retrieved successfully")


# ---------------------------
# Admin
# ---------------------------
@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_property(data: Dict[str, Any] = Body(...)):
    return format_response(property_service.create(data), "Property created successfully")


@router.put("/{property_id}", dependencies=[Depends(require_admin)])
async def update_property(property_id: int, data: Dict[str, Any] = Body(...)):
    return format_response(property_service.update(property_id, data), "Property updated successfully")


@router.delete("/{property_id}", dependencies=[Depends(require_admin)])
async def delete_property(property_id: int):
    return format_response(property_service.delete(property_id), "Property deleted successfully")


@router.patch("/{property_id}/toggle-availability", dependencies=[Depends(require_admin)])
async def toggle_availability(property_id: int):
    prop = property_service.toggle_availability(property_id)
    status = "available" if prop["available"] else "unavailable"
    return format_response(prop, f"Property marked as {status}")


@router.patch("/{property_id}/set-featured", dependencies=[Depends(require_admin)])
async def set_featured(property_id: int, body: Optional[FeaturedUpdate] = None):
    featured = body.featured if body else True
    prop = property_service.set_featured(property_id, featured)
    status = "featured" if prop["featured"] else "not featured"
    return format_response(prop, f"Property marked as {status}")
