from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from outputdash.db import get_db
from outputdash.models.saved_report import SavedReport
from outputdash.schemas.report import SavedReportCreate, SavedReportRead


router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/", response_model=SavedReportRead)
def save_report(payload: SavedReportCreate, db: Session = Depends(get_db)):
    if not payload.name.strip():
        raise HTTPException(status_code=422, detail="name must not be blank")

    row = SavedReport(
        id=f"report_{uuid4().hex}",
        name=payload.name,
        athlete_id=payload.athlete_id,
        athlete_name=payload.athlete_name,
        exercise=payload.exercise,
        time_range=payload.time_range,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/", response_model=list[SavedReportRead])
def list_reports(db: Session = Depends(get_db)):
    # Most recent first
    return (
        db.query(SavedReport)
        .order_by(SavedReport.created_at.desc(), SavedReport.id.desc())
        .all()
    )


@router.delete("/{report_id}", response_model=SavedReportRead)
def delete_report(report_id: str, db: Session = Depends(get_db)):
    row = db.query(SavedReport).filter(SavedReport.id == report_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Report not found")
    deleted = SavedReportRead.model_validate(row)
    db.delete(row)
    db.commit()
    return deleted
