from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.models.school_year import SchoolYear
from app.schemas.school_year import SchoolYearOut

router = APIRouter()


@router.get("/", response_model=list[SchoolYearOut])
def list_school_years(db: Session = Depends(get_db)) -> list[SchoolYearOut]:
    return list(db.execute(select(SchoolYear).order_by(SchoolYear.name)).scalars())
