from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import yetki_gerekli
from ..config import YETKI_FIYAT_GORME, YETKI_FIYAT_YONETIM, YETKI_FIYAT_SILME
from ..fiyat_servisi import FiyatService
from ..cop_kutusu_servisi import CopKutusuService

router = APIRouter(prefix="/fiyatlar", tags=["Fiyatlar"])

@router.get("/gecerli", response_model=Optional[modeller.FiyatRead])
def read_gecerli_fiyat(
    urun_id: int,
    fiyat_tipi: semalar.FiyatTipiEnum = semalar.FiyatTipiEnum.SATIS,
    tarih: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_FIYAT_GORME))
):
    # Geçerli fiyat yoksa null döner, hata değildir
    return FiyatService(db).resolve_price(urun_id, fiyat_tipi, tarih)

@router.get("/gecmis/{urun_id}", response_model=modeller.FiyatListResponse)
def read_fiyat_gecmisi(
    urun_id: int,
    fiyat_tipi: Optional[semalar.FiyatTipiEnum] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_FIYAT_GORME))
):
    fiyatlar = FiyatService(db).price_history(urun_id, fiyat_tipi, limit)
    return {"items": fiyatlar, "total": len(fiyatlar)}

@router.get("/degisiklikler", response_model=modeller.FiyatListResponse)
def read_fiyat_degisiklikleri(
    baslangic: datetime,
    bitis: datetime,
    fiyat_tipi: Optional[semalar.FiyatTipiEnum] = None,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_FIYAT_GORME))
):
    fiyatlar = FiyatService(db).price_changes(baslangic, bitis, fiyat_tipi)
    return {"items": fiyatlar, "total": len(fiyatlar)}

@router.post("/", response_model=modeller.FiyatRead, status_code=status.HTTP_201_CREATED)
def create_fiyat(
    fiyat: modeller.FiyatCreate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_FIYAT_YONETIM))
):
    return FiyatService(db).create_price(
        urun_id=fiyat.urun_id,
        birim_fiyat=fiyat.birim_fiyat,
        baslangic_tarihi=fiyat.baslangic_tarihi,
        fiyat_tipi=fiyat.fiyat_tipi,
        bitis_tarihi=fiyat.bitis_tarihi,
        birim=fiyat.birim,
        aciklama=fiyat.aciklama,
        eskiyi_kapat=fiyat.eskiyi_kapat,
        kullanici_id=current_user.id,
    )

@router.put("/{fiyat_id}", response_model=modeller.FiyatRead)
def update_fiyat(
    fiyat_id: int,
    fiyat_update: modeller.FiyatUpdate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_FIYAT_YONETIM))
):
    return FiyatService(db).update_price(
        fiyat_id, fiyat_update.model_dump(exclude_unset=True), kullanici_id=current_user.id
    )

@router.delete("/{fiyat_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_fiyat(
    fiyat_id: int,
    sebep: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_FIYAT_SILME))
):
    CopKutusuService(db).soft_delete(semalar.CopTipiEnum.FIYAT, fiyat_id, kullanici_id=current_user.id, sebep=sebep)
    return
