from datetime import date

from pydantic import BaseModel


class SchoolYearOut(BaseModel):
    id: str
    name: str
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = False

    model_config = {"from_attributes": True}
