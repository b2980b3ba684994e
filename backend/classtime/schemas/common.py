from __future__ import annotations

import math

from pydantic import BaseModel


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    last_page: int

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> "PageMeta":
        return cls(total=total, page=page, limit=limit, last_page=math.ceil(total / limit))
