from sqlalchemy.orm import Session
from sqlalchemy import or_
from datetime import datetime, date, time, timedelta
from typing import List, Optional
import logging

from . import semalar
from .semalar import FiyatTipiEnum
from .veritabani import islem
from .hatalar import (
    InvalidInputError, NotFoundError, InvalidPriceError,
    ProductInactiveError, OverlappingPriceError
)
from .denetim import denetim_kaydi

logger = logging.getLogger(__name__)


def fiyat_tipi_coz(fiyat_tipi) -> FiyatTipiEnum:
    try:
        return FiyatTipiEnum(fiyat_tipi)
    except ValueError:
        raise InvalidInputError(
            f"Geçersiz fiyat tipi: {fiyat_tipi}",
            detay={"gecerli_tipler": [t.value for t in FiyatTipiEnum]}
        )


def _tarihe_cevir(tarih) -> datetime:
    if tarih is None:
        return datetime.now()
    if isinstance(tarih, datetime):
        return tarih
    if isinstance(tarih, date):
        return datetime.combine(tarih, time.min)
    raise InvalidInputError(f"Geçersiz tarih: {tarih}")


def fiyat_dogrula(birim_fiyat, baslangic_tarihi, bitis_tarihi) -> None:
    """Fiyat ve tarih aralığı kurallarını işlem açılmadan önce kontrol eder."""
    if birim_fiyat is None or birim_fiyat <= 0:
        raise InvalidPriceError("Fiyat sıfırdan büyük olmalıdır.", detay={"birim_fiyat": birim_fiyat})
    if baslangic_tarihi is None:
        raise InvalidInputError("Başlangıç tarihi zorunludur.")
    if bitis_tarihi is not None and bitis_tarihi <= baslangic_tarihi:
        raise InvalidPriceError(
            "Bitiş tarihi başlangıç tarihinden sonra olmalıdır.",
            detay={"baslangic_tarihi": baslangic_tarihi, "bitis_tarihi": bitis_tarihi}
        )


class FiyatService:
    def __init__(self, db: Session):
        self.db = db

    def resolve_price(self, urun_id: int, fiyat_tipi, tarih=None) -> Optional[semalar.UrunFiyat]:
        """
        Ürünün verilen tarihte geçerli fiyat kaydını döndürür.

        Aktif ve silinmemiş kayıtlardan başlangıcı tarihten önce, bitişi boş ya da
        tarihten sonra olanlar arasından en son başlayan seçilir. Eşitlikte en son
        oluşturulan kazanır. Eşleşme yoksa None döner.
        """
        fiyat_tipi = fiyat_tipi_coz(fiyat_tipi)
        tarih = _tarihe_cevir(tarih)
        UrunFiyat = semalar.UrunFiyat
        return self.db.query(UrunFiyat).filter(
            UrunFiyat.urun_id == urun_id,
            UrunFiyat.fiyat_tipi == fiyat_tipi,
            UrunFiyat.aktif == True,
            UrunFiyat.silinme_tarihi.is_(None),
            UrunFiyat.baslangic_tarihi <= tarih,
            or_(UrunFiyat.bitis_tarihi.is_(None), UrunFiyat.bitis_tarihi >= tarih)
        ).order_by(
            UrunFiyat.baslangic_tarihi.desc(),
            UrunFiyat.olusturma_tarihi.desc(),
            UrunFiyat.id.desc()
        ).first()

    def cakisan_fiyatlar(self, urun_id: int, fiyat_tipi: FiyatTipiEnum, baslangic: datetime,
                         bitis: Optional[datetime], haric_id: Optional[int] = None) -> List[semalar.UrunFiyat]:
        # Kapalı aralıklar: [baslangic, bitis], bitis None ise sonsuz
        UrunFiyat = semalar.UrunFiyat
        query = self.db.query(UrunFiyat).filter(
            UrunFiyat.urun_id == urun_id,
            UrunFiyat.fiyat_tipi == fiyat_tipi,
            UrunFiyat.aktif == True,
            UrunFiyat.silinme_tarihi.is_(None),
            or_(UrunFiyat.bitis_tarihi.is_(None), UrunFiyat.bitis_tarihi >= baslangic)
        )
        if bitis is not None:
            query = query.filter(UrunFiyat.baslangic_tarihi <= bitis)
        if haric_id is not None:
            query = query.filter(UrunFiyat.id != haric_id)
        return query.order_by(UrunFiyat.baslangic_tarihi).all()

    def urunu_kilitle(self, urun_id: int) -> semalar.Urun:
        """Ürün satırını işlem sonuna kadar kilitler; pasif veya silinmişse hata verir."""
        urun = self.db.query(semalar.Urun).filter(semalar.Urun.id == urun_id).with_for_update().first()
        if not urun:
            raise NotFoundError("Ürün bulunamadı.", detay={"urun_id": urun_id})
        if not urun.aktif or urun.silinme_tarihi is not None:
            raise ProductInactiveError("Ürün aktif değil.", detay={"urun_id": urun_id})
        return urun

    def create_price(self, urun_id: int, birim_fiyat: float, baslangic_tarihi,
                     fiyat_tipi=FiyatTipiEnum.SATIS, bitis_tarihi=None, birim: str = "KG",
                     aciklama: Optional[str] = None, eskiyi_kapat: bool = False,
                     kullanici_id: Optional[int] = None) -> semalar.UrunFiyat:
        """
        Yeni fiyat kaydı oluşturur.

        Aynı ürün ve tipte aralığı çakışan aktif bir kayıt varsa OverlappingPriceError
        fırlatılır. `eskiyi_kapat` verilirse çakışan kayıtlar aynı işlemde kapatılır:
        yeni başlangıçtan önce başlayanların bitişi yeni başlangıcın hemen öncesine
        çekilir, diğerleri pasife alınır.
        """
        fiyat_tipi = fiyat_tipi_coz(fiyat_tipi)
        baslangic_tarihi = _tarihe_cevir(baslangic_tarihi)
        if bitis_tarihi is not None:
            bitis_tarihi = _tarihe_cevir(bitis_tarihi)
        fiyat_dogrula(birim_fiyat, baslangic_tarihi, bitis_tarihi)

        with islem(self.db):
            self.urunu_kilitle(urun_id)

            onceki = self.resolve_price(urun_id, fiyat_tipi, baslangic_tarihi)
            cakisanlar = self.cakisan_fiyatlar(urun_id, fiyat_tipi, baslangic_tarihi, bitis_tarihi)
            if cakisanlar and not eskiyi_kapat:
                logger.warning(
                    f"Çakışan fiyat reddedildi: ürün {urun_id}, tip {fiyat_tipi.value}, "
                    f"çakışan kayıtlar {[f.id for f in cakisanlar]}"
                )
                raise OverlappingPriceError(
                    "Bu tarih aralığında aktif bir fiyat zaten mevcut.",
                    detay={
                        "urun_id": urun_id,
                        "fiyat_tipi": fiyat_tipi.value,
                        "cakisan_fiyat_idleri": [f.id for f in cakisanlar],
                    }
                )

            kapanis = baslangic_tarihi - timedelta(seconds=1)
            for eski in cakisanlar:
                if eski.baslangic_tarihi <= kapanis:
                    eski.bitis_tarihi = kapanis
                else:
                    eski.aktif = False

            eski_fiyat = onceki.birim_fiyat if onceki else None
            degisim_yuzdesi = None
            if eski_fiyat:
                degisim_yuzdesi = round((birim_fiyat - eski_fiyat) / eski_fiyat * 100, 2)

            db_fiyat = semalar.UrunFiyat(
                urun_id=urun_id,
                fiyat_tipi=fiyat_tipi,
                birim_fiyat=birim_fiyat,
                birim=birim,
                baslangic_tarihi=baslangic_tarihi,
                bitis_tarihi=bitis_tarihi,
                aktif=True,
                aciklama=aciklama,
                eski_fiyat=eski_fiyat,
                degisim_yuzdesi=degisim_yuzdesi,
                olusturan_kullanici_id=kullanici_id,
            )
            self.db.add(db_fiyat)
            self.db.flush()

        self.db.refresh(db_fiyat)
        logger.info(f"Fiyat oluşturuldu: ürün {urun_id}, {fiyat_tipi.value} = {birim_fiyat} (kayıt {db_fiyat.id})")
        denetim_kaydi(
            "FIYAT_OLUSTUR",
            f"Ürün {urun_id} için {fiyat_tipi.value} fiyatı {birim_fiyat} olarak tanımlandı",
            kullanici_id=kullanici_id,
            sonra={"fiyat_id": db_fiyat.id, "birim_fiyat": birim_fiyat},
            kapatilan=[f.id for f in cakisanlar],
        )
        return db_fiyat

    def update_price(self, fiyat_id: int, degisiklikler: dict,
                     kullanici_id: Optional[int] = None) -> semalar.UrunFiyat:
        db_fiyat = self.db.query(semalar.UrunFiyat).filter(
            semalar.UrunFiyat.id == fiyat_id,
            semalar.UrunFiyat.silinme_tarihi.is_(None)
        ).first()
        if not db_fiyat:
            raise NotFoundError("Fiyat kaydı bulunamadı.", detay={"fiyat_id": fiyat_id})

        # Zorunlu alanlar açıkça null gönderilemez
        if "baslangic_tarihi" in degisiklikler and degisiklikler["baslangic_tarihi"] is None:
            raise InvalidInputError("Başlangıç tarihi zorunludur.", detay={"fiyat_id": fiyat_id})
        if "birim_fiyat" in degisiklikler and degisiklikler["birim_fiyat"] is None:
            raise InvalidInputError("Birim fiyat zorunludur.", detay={"fiyat_id": fiyat_id})

        once = {"birim_fiyat": db_fiyat.birim_fiyat, "baslangic_tarihi": db_fiyat.baslangic_tarihi,
                "bitis_tarihi": db_fiyat.bitis_tarihi}
        yeni = {**once, **degisiklikler}
        if "baslangic_tarihi" in degisiklikler:
            yeni["baslangic_tarihi"] = _tarihe_cevir(yeni["baslangic_tarihi"])
        if yeni.get("bitis_tarihi") is not None:
            yeni["bitis_tarihi"] = _tarihe_cevir(yeni["bitis_tarihi"])
        fiyat_dogrula(yeni["birim_fiyat"], yeni["baslangic_tarihi"], yeni["bitis_tarihi"])

        with islem(self.db):
            self.urunu_kilitle(db_fiyat.urun_id)
            if db_fiyat.aktif:
                cakisanlar = self.cakisan_fiyatlar(
                    db_fiyat.urun_id, db_fiyat.fiyat_tipi,
                    yeni["baslangic_tarihi"], yeni["bitis_tarihi"], haric_id=db_fiyat.id
                )
                if cakisanlar:
                    raise OverlappingPriceError(
                        "Güncellenen tarih aralığı başka bir aktif fiyat ile çakışıyor.",
                        detay={"fiyat_id": fiyat_id, "cakisan_fiyat_idleri": [f.id for f in cakisanlar]}
                    )
            for key, value in degisiklikler.items():
                if key in ("baslangic_tarihi", "bitis_tarihi"):
                    value = yeni[key]
                setattr(db_fiyat, key, value)

        self.db.refresh(db_fiyat)
        denetim_kaydi(
            "FIYAT_GUNCELLE", f"Fiyat kaydı {fiyat_id} güncellendi",
            kullanici_id=kullanici_id, once=once, sonra=degisiklikler
        )
        return db_fiyat

    def price_history(self, urun_id: int, fiyat_tipi=None, limit: int = 50) -> List[semalar.UrunFiyat]:
        query = self.db.query(semalar.UrunFiyat).filter(
            semalar.UrunFiyat.urun_id == urun_id,
            semalar.UrunFiyat.silinme_tarihi.is_(None)
        )
        if fiyat_tipi is not None:
            query = query.filter(semalar.UrunFiyat.fiyat_tipi == fiyat_tipi_coz(fiyat_tipi))
        return query.order_by(semalar.UrunFiyat.baslangic_tarihi.desc()).limit(limit).all()

    def price_changes(self, baslangic, bitis, fiyat_tipi=None) -> List[semalar.UrunFiyat]:
        """Tarih aralığında önceki bir fiyatın yerini alan kayıtlar (en yeni önce)."""
        baslangic = _tarihe_cevir(baslangic)
        bitis = _tarihe_cevir(bitis)
        query = self.db.query(semalar.UrunFiyat).filter(
            semalar.UrunFiyat.eski_fiyat.isnot(None),
            semalar.UrunFiyat.silinme_tarihi.is_(None),
            semalar.UrunFiyat.baslangic_tarihi >= baslangic,
            semalar.UrunFiyat.baslangic_tarihi <= bitis
        )
        if fiyat_tipi is not None:
            query = query.filter(semalar.UrunFiyat.fiyat_tipi == fiyat_tipi_coz(fiyat_tipi))
        return query.order_by(semalar.UrunFiyat.baslangic_tarihi.desc()).all()
