from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import yetki_gerekli
from ..config import YETKI_ODEME, YETKI_SIPARIS_SILME
from ..siparis_servisi import SiparisService
from ..odeme_servisi import OdemeService

router = APIRouter(prefix="/siparisler", tags=["Siparişler"])

@router.post("/", response_model=modeller.SiparisRead, status_code=status.HTTP_201_CREATED)
def create_siparis(
    siparis: modeller.SiparisCreate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_ODEME))
):
    db_siparis = SiparisService(db).create_order(siparis, kullanici_id=current_user.id)
    return modeller.SiparisRead.model_validate(db_siparis, from_attributes=True)

@router.get("/{siparis_id}", response_model=modeller.SiparisRead)
def read_siparis(
    siparis_id: int,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_ODEME))
):
    siparis = SiparisService(db).get_order(siparis_id)
    return modeller.SiparisRead.model_validate(siparis, from_attributes=True)

@router.delete("/{siparis_id}", response_model=modeller.SiparisSilmeSonucu)
def delete_siparis(
    siparis_id: int,
    force: bool = False,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_SIPARIS_SILME))
):
    return OdemeService(db).delete_order(siparis_id, force=force, kullanici_id=current_user.id)

@router.get("/{siparis_id}/odemeler", response_model=modeller.OdemeListResponse)
def read_odemeler(
    siparis_id: int,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_ODEME))
):
    return OdemeService(db).list_payments(siparis_id)

@router.post("/{siparis_id}/odemeler", response_model=modeller.OdemeRead, status_code=status.HTTP_201_CREATED)
def create_odeme(
    siparis_id: int,
    odeme: modeller.OdemeCreate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_ODEME))
):
    return OdemeService(db).add_payment(
        siparis_id,
        odeme.tutar,
        odeme_yontemi=odeme.odeme_yontemi,
        aciklama=odeme.aciklama,
        odeme_tarihi=odeme.odeme_tarihi,
        kullanici_id=current_user.id,
    )

@router.delete("/{siparis_id}/odemeler/{odeme_id}", response_model=modeller.OdemeSilmeSonucu)
def delete_odeme(
    siparis_id: int,
    odeme_id: int,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_SIPARIS_SILME))
):
    return OdemeService(db).delete_payment(siparis_id, odeme_id, kullanici_id=current_user.id)
