from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, or_
import logging
from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import yetki_gerekli
from ..config import YETKI_MALIYET_GORME, YETKI_RECETE_YONETIM

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hammaddeler", tags=["Hammaddeler"])

@router.post("/", response_model=modeller.HammaddeRead, status_code=status.HTTP_201_CREATED)
def create_hammadde(
    hammadde: modeller.HammaddeCreate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_RECETE_YONETIM))
):
    kod = hammadde.kod.strip()
    # Kod benzersizliği büyük/küçük harf duyarsız kontrol edilir
    mevcut = db.query(semalar.Hammadde).filter(func.lower(semalar.Hammadde.kod) == kod.lower()).first()
    if mevcut:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Hammadde kodu zaten mevcut.")
    if hammadde.birim_fiyat is not None and hammadde.birim_fiyat < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Birim fiyat negatif olamaz.")

    try:
        db_hammadde = semalar.Hammadde(**hammadde.model_dump(exclude={"kod"}), kod=kod, aktif=True)
        db.add(db_hammadde)
        db.commit()
        db.refresh(db_hammadde)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Hammadde kodu zaten mevcut.")
    logger.info(f"Hammadde oluşturuldu: {db_hammadde.kod} ({db_hammadde.ad})")
    return db_hammadde

@router.get("/", response_model=modeller.HammaddeListResponse)
def read_hammaddeler(
    skip: int = 0,
    limit: int = 100,
    arama: str = Query(None),
    sadece_aktif: bool = True,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_MALIYET_GORME))
):
    query = db.query(semalar.Hammadde)
    if sadece_aktif:
        query = query.filter(semalar.Hammadde.aktif == True)
    if arama:
        query = query.filter(or_(
            semalar.Hammadde.ad.ilike(f"%{arama}%"),
            semalar.Hammadde.kod.ilike(f"%{arama}%")
        ))
    total_count = query.count()
    hammaddeler = query.order_by(semalar.Hammadde.ad).offset(skip).limit(limit).all()
    return {"items": hammaddeler, "total": total_count}

@router.delete("/{hammadde_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_hammadde(
    hammadde_id: int,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_RECETE_YONETIM))
):
    # Reçetelerde kullanılabileceği için hammadde fiziksel olarak silinmez, pasife alınır
    db_hammadde = db.query(semalar.Hammadde).filter(semalar.Hammadde.id == hammadde_id).first()
    if not db_hammadde:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hammadde bulunamadı")
    db_hammadde.aktif = False
    db.commit()
    return
