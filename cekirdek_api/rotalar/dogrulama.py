from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
import logging

from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import create_access_token, verify_password
from ..config import ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dogrulama", tags=["Kimlik Doğrulama"])

@router.post("/login", response_model=modeller.Token)
def authenticate_user(user_login: modeller.KullaniciLogin, db: Session = Depends(get_db)):
    user = db.query(semalar.Kullanici).filter(semalar.Kullanici.kullanici_adi == user_login.kullanici_adi).first()

    if not user or not user.aktif or not verify_password(user_login.sifre, user.hashed_sifre):
        logger.warning(f"Başarısız giriş denemesi: {user_login.kullanici_adi}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Hatalı kullanıcı adı veya şifre",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.son_giris_tarihi = datetime.now()
    db.commit()

    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.kullanici_adi}, expires_delta=access_token_expires
    )

    return {"access_token": access_token, "token_type": "bearer", "kullanici_id": user.id}
