from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import yetki_gerekli
from ..config import YETKI_ODEME
from ..api_servisler import CariHesaplamaService

router = APIRouter(
    prefix="/cari_hareketler",
    tags=["Cari Hareketler"]
)

@router.get("/{cari_musteri_id}/bakiye", response_model=modeller.CariBakiyeRead)
def read_cari_bakiye(
    cari_musteri_id: int,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_ODEME))
):
    musteri = db.query(semalar.CariMusteri).filter(semalar.CariMusteri.id == cari_musteri_id).first()
    if not musteri:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cari müşteri bulunamadı")

    servis = CariHesaplamaService(db)
    hareketler = servis.cari_hareketleri(cari_musteri_id, limit=limit)
    return {
        "cari_musteri_id": cari_musteri_id,
        "net_bakiye": servis.calculate_cari_net_bakiye(cari_musteri_id),
        "hareketler": [modeller.CariHareketRead.model_validate(h, from_attributes=True) for h in hareketler],
    }
