from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import yetki_gerekli
from ..config import (
    YETKI_RECETE_YONETIM, YETKI_RECETE_SILME, YETKI_MALIYET_GORME,
    YETKI_MALIYET_KAYDET, YETKI_MARJ_GORME, YETKI_TOPLU_HESAPLAMA
)
from ..maliyet_servisi import MaliyetService
from ..recete_servisi import ReceteService

router = APIRouter(prefix="/receteler", tags=["Reçeteler"])

@router.post("/", response_model=modeller.ReceteRead, status_code=status.HTTP_201_CREATED)
def create_recete(
    recete: modeller.ReceteCreate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_RECETE_YONETIM))
):
    return ReceteService(db).create_recipe(recete, kullanici_id=current_user.id)

@router.put("/maliyet/toplu", response_model=modeller.TopluHesaplamaSonucu)
def recalculate_all_receteler(
    istek: modeller.TopluHesaplamaIstegi,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_TOPLU_HESAPLAMA))
):
    return MaliyetService(db).recalculate_all(
        recete_idleri=istek.recete_idleri, sadece_aktif=istek.sadece_aktif, kullanici_id=current_user.id
    )

@router.post("/maliyet/hesapla", response_model=modeller.HesaplamaSonucu)
def recalculate_recete(
    istek: modeller.HesaplamaIstegi,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_MALIYET_GORME))
):
    # Kaydetme yetkisi olmayan kullanıcı için sadece hesaplama yapılır
    kaydet = istek.kaydet and (current_user.yetki_seviyesi or 0) >= YETKI_MALIYET_KAYDET
    return MaliyetService(db).recalculate(
        recete_id=istek.recete_id,
        kalemler=istek.kalemler,
        porsiyon=istek.porsiyon,
        kaydet=kaydet,
        kullanici_id=current_user.id,
    )

@router.get("/{recete_id}/maliyet", response_model=modeller.MaliyetRaporu)
def read_recete_maliyeti(
    recete_id: int,
    detay: bool = False,
    marj: bool = False,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_MALIYET_GORME))
):
    marj = marj and (current_user.yetki_seviyesi or 0) >= YETKI_MARJ_GORME
    return MaliyetService(db).get_current_cost(recete_id, detay=detay, marj=marj)

@router.put("/{recete_id}", response_model=modeller.ReceteRead)
def update_recete(
    recete_id: int,
    recete_update: modeller.ReceteUpdate,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_RECETE_YONETIM))
):
    return ReceteService(db).update_recipe(recete_id, recete_update, kullanici_id=current_user.id)

@router.delete("/{recete_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recete(
    recete_id: int,
    sebep: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_RECETE_SILME))
):
    ReceteService(db).delete_recipe(recete_id, kullanici_id=current_user.id, sebep=sebep)
    return
