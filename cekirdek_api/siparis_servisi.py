from sqlalchemy.orm import Session
from datetime import datetime, date
from typing import Optional
import calendar
import logging

from . import semalar, modeller
from .semalar import FiyatTipiEnum, OdemeDurumuEnum, IslemYoneEnum, KaynakTipEnum
from .veritabani import islem
from .hatalar import InvalidInputError, NotFoundError, InvalidPriceError
from .fiyat_servisi import FiyatService
from .denetim import denetim_kaydi

logger = logging.getLogger(__name__)


def ay_sonu(tarih: datetime) -> date:
    son_gun = calendar.monthrange(tarih.year, tarih.month)[1]
    return date(tarih.year, tarih.month, son_gun)


class SiparisService:
    def __init__(self, db: Session):
        self.db = db
        self.fiyatlar = FiyatService(db)

    def _siparis_no_uret(self, tarih: datetime) -> str:
        onek = f"SP-{tarih.year}-"
        son = self.db.query(semalar.Siparis.siparis_no).filter(
            semalar.Siparis.siparis_no.like(f"{onek}%")
        ).order_by(semalar.Siparis.siparis_no.desc()).first()
        sira = int(son[0].rsplit("-", 1)[1]) + 1 if son else 1
        return f"{onek}{sira:05d}"

    def _birim_maliyet(self, urun_id: int, tarih: datetime) -> float:
        """Aktif reçetenin kayıtlı birim maliyeti, yoksa ALIS fiyatı, o da yoksa 0."""
        recete = self.db.query(semalar.Recete).filter(
            semalar.Recete.urun_id == urun_id,
            semalar.Recete.aktif == True,
            semalar.Recete.silinme_tarihi.is_(None)
        ).order_by(semalar.Recete.id.desc()).first()
        if recete and recete.birim_maliyet:
            return recete.birim_maliyet
        alis = self.fiyatlar.resolve_price(urun_id, FiyatTipiEnum.ALIS, tarih)
        return alis.birim_fiyat if alis else 0.0

    def create_order(self, veri: modeller.SiparisCreate, kullanici_id: Optional[int] = None) -> semalar.Siparis:
        """
        Siparişi oluşturur. Kalemlerin fiyat ve maliyeti sipariş anında sabitlenir,
        sonradan fiyat değişse de yeniden hesaplanmaz. Sipariş tutarı kadar BORC
        cari hareketi ay sonu vadeli olarak yazılır.
        """
        if not veri.kalemler:
            raise InvalidInputError("Sipariş en az bir kalem içermelidir.")
        for kalem in veri.kalemler:
            if kalem.miktar is None or kalem.miktar <= 0:
                raise InvalidInputError("Kalem miktarı sıfırdan büyük olmalıdır.", detay={"urun_id": kalem.urun_id})
            if kalem.birim_fiyat is not None and kalem.birim_fiyat <= 0:
                raise InvalidPriceError("Kalem fiyatı sıfırdan büyük olmalıdır.", detay={"urun_id": kalem.urun_id})

        musteri = self.db.query(semalar.CariMusteri).filter(semalar.CariMusteri.id == veri.cari_musteri_id).first()
        if not musteri or not musteri.aktif:
            raise NotFoundError("Cari müşteri bulunamadı.", detay={"cari_musteri_id": veri.cari_musteri_id})

        tarih = veri.tarih or datetime.now()

        with islem(self.db):
            db_siparis = semalar.Siparis(
                siparis_no=self._siparis_no_uret(tarih),
                cari_musteri_id=musteri.id,
                tarih=tarih,
                durum=veri.durum,
                odeme_durumu=OdemeDurumuEnum.BEKLIYOR,
                siparis_notlari=veri.siparis_notlari,
                olusturan_kullanici_id=kullanici_id,
            )
            self.db.add(db_siparis)
            self.db.flush() # Sipariş ID'sini almak için

            toplam_tutar = 0.0
            toplam_maliyet = 0.0
            for kalem_data in veri.kalemler:
                urun = self.fiyatlar.urunu_kilitle(kalem_data.urun_id)
                birim_fiyat = kalem_data.birim_fiyat
                if birim_fiyat is None:
                    fiyat = self.fiyatlar.resolve_price(urun.id, FiyatTipiEnum.SATIS, tarih)
                    if not fiyat:
                        raise InvalidPriceError(
                            "Ürünün sipariş tarihinde geçerli bir satış fiyatı yok.",
                            detay={"urun_id": urun.id, "tarih": tarih}
                        )
                    birim_fiyat = fiyat.birim_fiyat
                birim_maliyet = self._birim_maliyet(urun.id, tarih)

                kalem_tutari = round(kalem_data.miktar * birim_fiyat, 2)
                kalem_maliyeti = round(kalem_data.miktar * birim_maliyet, 2)
                self.db.add(semalar.SiparisKalemi(
                    siparis_id=db_siparis.id,
                    urun_id=urun.id,
                    urun_adi=urun.ad,
                    urun_kodu=urun.kod,
                    miktar=kalem_data.miktar,
                    birim=urun.birim,
                    birim_fiyat=birim_fiyat,
                    toplam_tutar=kalem_tutari,
                    birim_maliyet=birim_maliyet,
                    toplam_maliyet=kalem_maliyeti,
                    kar_marji=round(kalem_tutari - kalem_maliyeti, 2),
                ))
                toplam_tutar += kalem_tutari
                toplam_maliyet += kalem_maliyeti

            db_siparis.toplam_tutar = round(toplam_tutar, 2)
            db_siparis.toplam_maliyet = round(toplam_maliyet, 2)
            db_siparis.kar_marji = round(toplam_tutar - toplam_maliyet, 2)

            self.db.add(semalar.CariHareket(
                cari_musteri_id=musteri.id,
                siparis_id=db_siparis.id,
                tarih=tarih,
                islem_yone=IslemYoneEnum.BORC,
                tutar=db_siparis.toplam_tutar,
                aciklama=f"{db_siparis.siparis_no} nolu sipariş",
                kaynak=KaynakTipEnum.SIPARIS,
                vade_tarihi=ay_sonu(tarih),
                olusturan_kullanici_id=kullanici_id,
            ))
            self.db.flush()

        self.db.refresh(db_siparis)
        logger.info(f"Sipariş oluşturuldu: {db_siparis.siparis_no}, tutar {db_siparis.toplam_tutar}")
        denetim_kaydi(
            "SIPARIS_OLUSTUR", f"Sipariş {db_siparis.siparis_no} oluşturuldu",
            kullanici_id=kullanici_id, sonra={"siparis_id": db_siparis.id, "toplam_tutar": db_siparis.toplam_tutar},
        )
        return db_siparis

    def get_order(self, siparis_id: int) -> semalar.Siparis:
        siparis = self.db.query(semalar.Siparis).filter(semalar.Siparis.id == siparis_id).first()
        if not siparis:
            raise NotFoundError("Sipariş bulunamadı.", detay={"siparis_id": siparis_id})
        return siparis
