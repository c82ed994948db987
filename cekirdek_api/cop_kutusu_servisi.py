from sqlalchemy.orm import Session
from sqlalchemy import or_
from datetime import datetime, timedelta
from typing import Optional
import logging

from . import semalar, modeller
from .semalar import CopTipiEnum
from .veritabani import islem
from .config import COP_VARSAYILAN_LIMIT, COP_MAKSIMUM_LIMIT, COP_TEMIZLEME_GUN
from .hatalar import InvalidInputError, NotFoundError, NotDeletedError, OverlappingPriceError
from .fiyat_servisi import FiyatService
from .denetim import denetim_kaydi

logger = logging.getLogger(__name__)

COP_MODELLERI = {
    CopTipiEnum.URUN: semalar.Urun,
    CopTipiEnum.RECETE: semalar.Recete,
    CopTipiEnum.FIYAT: semalar.UrunFiyat,
}


def cop_tipi_coz(varlik_tipi) -> CopTipiEnum:
    try:
        return CopTipiEnum(varlik_tipi)
    except ValueError:
        raise InvalidInputError(
            f"Geçersiz kayıt tipi: {varlik_tipi}",
            detay={"gecerli_tipler": [t.value for t in CopTipiEnum]}
        )


class CopKutusuService:
    def __init__(self, db: Session):
        self.db = db

    def soft_delete(self, varlik_tipi, kayit_id: int, kullanici_id: Optional[int] = None,
                    sebep: Optional[str] = None):
        """Kaydı pasife alır ve silinme bilgilerini yazar. Kayıt fiziksel olarak silinmez."""
        tip = cop_tipi_coz(varlik_tipi)
        model = COP_MODELLERI[tip]

        with islem(self.db):
            kayit = self.db.query(model).filter(
                model.id == kayit_id,
                model.silinme_tarihi.is_(None)
            ).with_for_update().first()
            if not kayit:
                raise NotFoundError("Silinecek kayıt bulunamadı.", detay={"tip": tip.value, "id": kayit_id})
            kayit.aktif = False
            kayit.silinme_tarihi = datetime.now()
            kayit.silen_kullanici_id = kullanici_id
            kayit.silme_sebebi = sebep

        self.db.refresh(kayit)
        logger.info(f"{tip.value} {kayit_id} çöp kutusuna taşındı.")
        denetim_kaydi("COP_SIL", f"{tip.value} {kayit_id} silindi", kullanici_id=kullanici_id, sebep=sebep)
        return kayit

    def _cop_kaydi(self, tip: CopTipiEnum, kayit) -> modeller.CopKaydi:
        if tip == CopTipiEnum.FIYAT:
            ad = kayit.urun.ad if kayit.urun else None
            kod = kayit.urun.kod if kayit.urun else None
            ek_bilgi = {
                "urun_id": kayit.urun_id,
                "fiyat_tipi": kayit.fiyat_tipi.value,
                "birim_fiyat": kayit.birim_fiyat,
                "baslangic_tarihi": kayit.baslangic_tarihi,
                "bitis_tarihi": kayit.bitis_tarihi,
            }
        else:
            ad, kod = kayit.ad, kayit.kod
            ek_bilgi = {"urun_id": kayit.urun_id} if tip == CopTipiEnum.RECETE else None
        return modeller.CopKaydi(
            id=kayit.id, tip=tip, ad=ad, kod=kod,
            silinme_tarihi=kayit.silinme_tarihi,
            silen_kullanici_id=kayit.silen_kullanici_id,
            silme_sebebi=kayit.silme_sebebi,
            ek_bilgi=ek_bilgi,
        )

    def list_trash(self, varlik_tipi, arama: Optional[str] = None, sayfa: int = 1,
                   limit: int = COP_VARSAYILAN_LIMIT) -> dict:
        """Silinmiş kayıtları en son silinen önce olacak şekilde sayfalı listeler."""
        tip = cop_tipi_coz(varlik_tipi)
        model = COP_MODELLERI[tip]
        limit = max(1, min(limit or COP_VARSAYILAN_LIMIT, COP_MAKSIMUM_LIMIT))
        sayfa = max(1, sayfa or 1)

        query = self.db.query(model).filter(model.silinme_tarihi.isnot(None))
        if arama:
            desen = f"%{arama}%"
            if tip == CopTipiEnum.URUN:
                query = query.filter(or_(
                    semalar.Urun.ad.ilike(desen),
                    semalar.Urun.kod.ilike(desen),
                    semalar.Urun.aciklama.ilike(desen)
                ))
            elif tip == CopTipiEnum.RECETE:
                query = query.filter(or_(semalar.Recete.ad.ilike(desen), semalar.Recete.kod.ilike(desen)))
            else:
                query = query.join(semalar.Urun, semalar.UrunFiyat.urun_id == semalar.Urun.id).filter(
                    or_(semalar.Urun.ad.ilike(desen), semalar.Urun.kod.ilike(desen))
                )

        total = query.count()
        kayitlar = query.order_by(model.silinme_tarihi.desc(), model.id.desc()) \
            .offset((sayfa - 1) * limit).limit(limit).all()
        return {
            "items": [self._cop_kaydi(tip, k) for k in kayitlar],
            "total": total,
            "sayfa": sayfa,
            "limit": limit,
        }

    def restore(self, varlik_tipi, kayit_id: int, kullanici_id: Optional[int] = None):
        """
        Silinmiş kaydı geri yükler. Fiyat kayıtlarında çakışma kontrolü tekrar yapılır,
        geri yükleme aktif bir fiyatla çakışacaksa OverlappingPriceError fırlatılır.
        """
        tip = cop_tipi_coz(varlik_tipi)
        model = COP_MODELLERI[tip]

        with islem(self.db):
            kayit = self.db.query(model).filter(model.id == kayit_id).with_for_update().first()
            if not kayit:
                raise NotFoundError("Kayıt bulunamadı.", detay={"tip": tip.value, "id": kayit_id})
            if kayit.silinme_tarihi is None:
                raise NotDeletedError("Kayıt silinmemiş, geri yüklenemez.", detay={"tip": tip.value, "id": kayit_id})

            if tip == CopTipiEnum.FIYAT:
                fiyat_servisi = FiyatService(self.db)
                fiyat_servisi.urunu_kilitle(kayit.urun_id)
                cakisanlar = fiyat_servisi.cakisan_fiyatlar(
                    kayit.urun_id, kayit.fiyat_tipi, kayit.baslangic_tarihi, kayit.bitis_tarihi,
                    haric_id=kayit.id
                )
                if cakisanlar:
                    raise OverlappingPriceError(
                        "Geri yüklenen fiyat mevcut bir aktif fiyat ile çakışıyor.",
                        detay={"fiyat_id": kayit.id, "cakisan_fiyat_idleri": [f.id for f in cakisanlar]}
                    )

            kayit.silinme_tarihi = None
            kayit.silen_kullanici_id = None
            kayit.silme_sebebi = None
            kayit.aktif = True

        self.db.refresh(kayit)
        logger.info(f"{tip.value} {kayit_id} geri yüklendi.")
        denetim_kaydi("COP_GERI_YUKLE", f"{tip.value} {kayit_id} geri yüklendi", kullanici_id=kullanici_id)
        return kayit

    def purge(self, gun: int = COP_TEMIZLEME_GUN) -> dict:
        """
        `gun` günden eski silinmiş kayıtları kalıcı olarak siler.

        Fiyatlar ve reçeteler (kalemleriyle) silinir. Ürünler ancak hiçbir sipariş
        kalemi, fiyat veya reçete tarafından kullanılmıyorsa silinir.
        """
        esik = datetime.now() - timedelta(days=gun)
        sonuc = {"fiyat": 0, "recete": 0, "urun": 0, "atlanan_urun": 0}

        with islem(self.db):
            sonuc["fiyat"] = self.db.query(semalar.UrunFiyat).filter(
                semalar.UrunFiyat.silinme_tarihi.isnot(None),
                semalar.UrunFiyat.silinme_tarihi < esik
            ).delete(synchronize_session=False)

            recete_idleri = [r.id for r in self.db.query(semalar.Recete.id).filter(
                semalar.Recete.silinme_tarihi.isnot(None),
                semalar.Recete.silinme_tarihi < esik
            ).all()]
            if recete_idleri:
                self.db.query(semalar.ReceteKalemi).filter(
                    semalar.ReceteKalemi.recete_id.in_(recete_idleri)
                ).delete(synchronize_session=False)
                self.db.query(semalar.Recete).filter(
                    semalar.Recete.id.in_(recete_idleri)
                ).delete(synchronize_session=False)
            sonuc["recete"] = len(recete_idleri)

            urun_idleri = [u.id for u in self.db.query(semalar.Urun.id).filter(
                semalar.Urun.silinme_tarihi.isnot(None),
                semalar.Urun.silinme_tarihi < esik
            ).all()]
            for urun_id in urun_idleri:
                kullaniliyor = (
                    self.db.query(semalar.SiparisKalemi.id).filter(semalar.SiparisKalemi.urun_id == urun_id).first()
                    or self.db.query(semalar.UrunFiyat.id).filter(semalar.UrunFiyat.urun_id == urun_id).first()
                    or self.db.query(semalar.Recete.id).filter(semalar.Recete.urun_id == urun_id).first()
                )
                if kullaniliyor:
                    sonuc["atlanan_urun"] += 1
                    continue
                self.db.query(semalar.Urun).filter(semalar.Urun.id == urun_id).delete(synchronize_session=False)
                sonuc["urun"] += 1

        logger.info(f"Çöp kutusu temizlendi ({gun} günden eski): {sonuc}")
        denetim_kaydi("COP_TEMIZLE", f"{gun} günden eski silinmiş kayıtlar kalıcı olarak silindi", **sonuc)
        return sonuc
