from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload
from database import get_db
import models, schemas, utils, oauth2, lifecycle

router = APIRouter(prefix= "/appointments/reviews", tags=['Reviews'])

@router.post("", status_code=201, response_model= schemas.Envelope[schemas.ReviewOutput])
def post_review(review: schemas.ReviewInput, db: Session = Depends(get_db), patient: models.Patient = Depends(oauth2.get_patient)):
    return {"data": lifecycle.submit_review(db, patient, review)}

@router.get("", response_model= schemas.Envelope[schemas.ReviewList])
def get_reviews(doctor_id: int = Query(..., alias="doctorId"), page: utils.Page = Depends(), db: Session = Depends(get_db)):
    query = db.query(models.Review).filter(models.Review.doctor_id == doctor_id)
    total = query.count()
    reviews = page.apply(query.options(joinedload(models.Review.patient).joinedload(models.Patient.user))
                         .order_by(models.Review.created_at.desc(), models.Review.review_id.desc())).all()
    return {"data": {"reviews": reviews, "pagination": page.meta(total)}}
