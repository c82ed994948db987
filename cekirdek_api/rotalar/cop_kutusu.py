from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from .. import modeller, semalar
from ..veritabani import get_db
from ..guvenlik import yetki_gerekli
from ..config import YETKI_COP_GORME, YETKI_GERI_YUKLE, COP_VARSAYILAN_LIMIT
from ..cop_kutusu_servisi import CopKutusuService

router = APIRouter(prefix="/cop_kutusu", tags=["Çöp Kutusu"])

@router.get("/", response_model=modeller.CopListResponse)
def read_cop_kutusu(
    tip: semalar.CopTipiEnum = semalar.CopTipiEnum.URUN,
    arama: str = Query(None),
    sayfa: int = 1,
    limit: int = COP_VARSAYILAN_LIMIT,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_COP_GORME))
):
    # limit servis tarafında 1-100 arasına çekilir
    return CopKutusuService(db).list_trash(tip, arama=arama, sayfa=sayfa, limit=limit)

@router.post("/geri_yukle", response_model=modeller.GeriYukleSonucu)
def geri_yukle(
    istek: modeller.GeriYukleIstegi,
    db: Session = Depends(get_db),
    current_user: semalar.Kullanici = Depends(yetki_gerekli(YETKI_GERI_YUKLE))
):
    kayit = CopKutusuService(db).restore(istek.tip, istek.id, kullanici_id=current_user.id)
    return {"tip": istek.tip, "id": kayit.id, "aktif": kayit.aktif}
