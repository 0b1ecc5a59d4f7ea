from fastapi import APIRouter, Depends
import models, schemas, oauth2

router = APIRouter(prefix= '/users', tags=['Users'])

@router.get("/me", response_model= schemas.Envelope[schemas.UserOutput])
def get_me(current_user: models.User = Depends(oauth2.require_role())):
    return {"data": current_user}
