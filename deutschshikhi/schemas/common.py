import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schéma exposé en camelCase, alimenté depuis les attributs ORM."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Réponse de succès uniforme ``{success, message?, data?}``."""
    payload: Dict[str, Any] = {"success": True}
    if message is not None:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return payload


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


def page_meta(total: int, page: int, limit: int) -> Dict[str, int]:
    """Métadonnées de pagination ajoutées à côté de ``data``."""
    return {"total": total, "page": page, "totalPages": math.ceil(total / limit) if limit else 0}
