# ------------------------------ IMPORTS ------------------------------
from math import ceil
from typing import Any, Dict, List, Type

from pydantic import BaseModel

# ------------------------------ SERIALIZERS ------------------------------

def serialize_models(items: List[Any], schema: Type[BaseModel]) -> List[Dict[str, Any]]:
    """Dump ORM rows through an output schema."""
    return [schema.model_validate(item).model_dump(mode="json") for item in items]

def paginate_response(
    items: List[Dict[str, Any]],
    total: int,
    page: int,
    limit: int,
    items_key: str = "items",
) -> Dict[str, Any]:
    """Wrap one already serialized page with its pagination metadata."""
    total_pages = ceil(total / limit) if limit else 0
    return {
        items_key: items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }

# ------------------------------ END OF FILE ------------------------------
