from typing import Optional

from pydantic import Field

from agricoventas.schemas.base import BaseSchema


class LocationCreate(BaseSchema):
    address_line1: str = Field(..., min_length=1, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: str = "Colombia"
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class LocationRead(BaseSchema):
    id: int
    user_id: int
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    department: str
    postal_code: Optional[str] = None
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
