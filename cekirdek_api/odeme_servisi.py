from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Optional
import logging

from . import semalar
from .semalar import OdemeDurumuEnum, OdemeTuruEnum, IslemYoneEnum, KaynakTipEnum
from .veritabani import islem
from .hatalar import InvalidInputError, NotFoundError, OverpaymentError, HasPaymentsError
from .denetim import denetim_kaydi

logger = logging.getLogger(__name__)


def odeme_durumu_hesapla(toplam_odenen: float, siparis_toplami: float) -> OdemeDurumuEnum:
    """Ödeme durumu her seferinde toplamlardan yeniden hesaplanır."""
    toplam_odenen = round(toplam_odenen or 0.0, 2)
    siparis_toplami = round(siparis_toplami or 0.0, 2)
    if toplam_odenen <= 0:
        return OdemeDurumuEnum.BEKLIYOR
    if toplam_odenen < siparis_toplami:
        return OdemeDurumuEnum.KISMI
    return OdemeDurumuEnum.TAMAMLANDI


class OdemeService:
    def __init__(self, db: Session):
        self.db = db

    def _siparisi_kilitle(self, siparis_id: int) -> semalar.Siparis:
        siparis = self.db.query(semalar.Siparis).filter(
            semalar.Siparis.id == siparis_id
        ).with_for_update().first()
        if not siparis:
            raise NotFoundError("Sipariş bulunamadı.", detay={"siparis_id": siparis_id})
        return siparis

    def toplam_odenen(self, siparis_id: int) -> float:
        toplam = self.db.query(func.coalesce(func.sum(semalar.CariOdeme.tutar), 0)).filter(
            semalar.CariOdeme.siparis_id == siparis_id
        ).scalar()
        return round(float(toplam), 2)

    def _durumu_guncelle(self, siparis: semalar.Siparis) -> float:
        self.db.flush()
        odenen = self.toplam_odenen(siparis.id)
        siparis.odeme_durumu = odeme_durumu_hesapla(odenen, siparis.toplam_tutar)
        return odenen

    def add_payment(self, siparis_id: int, tutar: float, odeme_yontemi=OdemeTuruEnum.NAKIT,
                    aciklama: Optional[str] = None, odeme_tarihi: Optional[datetime] = None,
                    kullanici_id: Optional[int] = None) -> semalar.CariOdeme:
        """
        Siparişe ödeme ekler.

        Sipariş satırı kilitlenir; mevcut ödemeler ile yeni tutarın toplamı sipariş
        tutarını aşarsa OverpaymentError fırlatılır ve hiçbir şey yazılmaz.
        """
        if tutar is None or tutar <= 0:
            raise InvalidInputError("Ödeme tutarı sıfırdan büyük olmalıdır.", detay={"tutar": tutar})
        try:
            odeme_yontemi = OdemeTuruEnum(odeme_yontemi)
        except ValueError:
            raise InvalidInputError(f"Geçersiz ödeme yöntemi: {odeme_yontemi}")
        tutar = round(tutar, 2)

        with islem(self.db):
            siparis = self._siparisi_kilitle(siparis_id)
            if not siparis.cari_musteri_id:
                raise InvalidInputError("Siparişin cari müşterisi yok, ödeme alınamaz.", detay={"siparis_id": siparis_id})

            siparis_toplami = round(siparis.toplam_tutar or 0.0, 2)
            odenen = self.toplam_odenen(siparis_id)
            if round(odenen + tutar, 2) > siparis_toplami:
                logger.warning(f"Fazla ödeme reddedildi: sipariş {siparis_id}, toplam {siparis_toplami}, ödenen {odenen}, istenen {tutar}")
                raise OverpaymentError(
                    "Ödeme tutarı kalan borcu aşıyor.",
                    detay={
                        "siparis_id": siparis_id,
                        "siparis_toplami": siparis_toplami,
                        "toplam_odenen": odenen,
                        "istenen": tutar,
                        "kalan": round(siparis_toplami - odenen, 2),
                    }
                )

            odeme = semalar.CariOdeme(
                siparis_id=siparis_id,
                cari_musteri_id=siparis.cari_musteri_id,
                tutar=tutar,
                odeme_yontemi=odeme_yontemi,
                odeme_tarihi=odeme_tarihi or datetime.now(),
                aciklama=aciklama,
                olusturan_kullanici_id=kullanici_id,
            )
            self.db.add(odeme)
            self.db.flush()

            self.db.add(semalar.CariHareket(
                cari_musteri_id=siparis.cari_musteri_id,
                odeme_id=odeme.id,
                tarih=odeme.odeme_tarihi,
                islem_yone=IslemYoneEnum.ALACAK,
                tutar=tutar,
                aciklama=aciklama or f"{siparis.siparis_no} nolu sipariş ödemesi",
                kaynak=KaynakTipEnum.ODEME,
                olusturan_kullanici_id=kullanici_id,
            ))
            yeni_odenen = self._durumu_guncelle(siparis)
            durum = siparis.odeme_durumu

        self.db.refresh(odeme)
        logger.info(f"Sipariş {siparis_id} için {tutar} tutarında ödeme alındı (durum: {durum.value}).")
        denetim_kaydi(
            "ODEME_EKLE", f"Sipariş {siparis_id} için {tutar} ödeme alındı",
            kullanici_id=kullanici_id,
            once={"toplam_odenen": odenen}, sonra={"toplam_odenen": yeni_odenen, "odeme_durumu": durum.value},
            odeme_id=odeme.id,
        )
        return odeme

    def delete_payment(self, siparis_id: int, odeme_id: int, kullanici_id: Optional[int] = None) -> dict:
        """Ödemeyi ve ona bağlı cari hareketleri siler, durumu yeniden hesaplar."""
        with islem(self.db):
            siparis = self._siparisi_kilitle(siparis_id)
            odeme = self.db.query(semalar.CariOdeme).filter(
                semalar.CariOdeme.id == odeme_id,
                semalar.CariOdeme.siparis_id == siparis_id
            ).first()
            if not odeme:
                raise NotFoundError("Ödeme bu siparişe ait değil veya bulunamadı.",
                                    detay={"siparis_id": siparis_id, "odeme_id": odeme_id})
            tutar = odeme.tutar

            self.db.query(semalar.CariHareket).filter(
                semalar.CariHareket.odeme_id == odeme_id
            ).delete(synchronize_session=False)
            self.db.delete(odeme)
            toplam_odenen = self._durumu_guncelle(siparis)
            sonuc = {
                "toplam_odenen": toplam_odenen,
                "siparis_toplami": round(siparis.toplam_tutar or 0.0, 2),
                "odeme_durumu": siparis.odeme_durumu,
            }

        logger.info(f"Sipariş {siparis_id} ödemesi {odeme_id} silindi.")
        denetim_kaydi(
            "ODEME_SIL", f"Sipariş {siparis_id} ödemesi {odeme_id} ({tutar}) silindi",
            kullanici_id=kullanici_id, sonra={"toplam_odenen": toplam_odenen},
        )
        return sonuc

    def list_payments(self, siparis_id: int) -> dict:
        siparis = self.db.query(semalar.Siparis).filter(semalar.Siparis.id == siparis_id).first()
        if not siparis:
            raise NotFoundError("Sipariş bulunamadı.", detay={"siparis_id": siparis_id})
        odemeler = self.db.query(semalar.CariOdeme).filter(
            semalar.CariOdeme.siparis_id == siparis_id
        ).order_by(semalar.CariOdeme.odeme_tarihi.desc(), semalar.CariOdeme.id.desc()).all()
        toplam_odenen = round(sum(o.tutar for o in odemeler), 2)
        siparis_toplami = round(siparis.toplam_tutar or 0.0, 2)
        return {
            "items": odemeler,
            "total": len(odemeler),
            "toplam_odenen": toplam_odenen,
            "siparis_toplami": siparis_toplami,
            "kalan": round(siparis_toplami - toplam_odenen, 2),
            "odeme_durumu": odeme_durumu_hesapla(toplam_odenen, siparis_toplami),
        }

    def delete_order(self, siparis_id: int, force: bool = False, kullanici_id: Optional[int] = None) -> dict:
        """
        Siparişi kalıcı olarak siler.

        Ödemesi olan sipariş ancak `force` ile silinir. Silme sırası: ödemelerin cari
        hareketleri, ödemeler, siparişin cari hareketleri, kalemler, sipariş.
        """
        with islem(self.db):
            siparis = self._siparisi_kilitle(siparis_id)
            odeme_idleri = [o.id for o in self.db.query(semalar.CariOdeme.id).filter(
                semalar.CariOdeme.siparis_id == siparis_id
            ).all()]
            if odeme_idleri and not force:
                raise HasPaymentsError(
                    "Siparişin ödemeleri var. Silmek için zorla silme seçeneğini kullanın.",
                    detay={"siparis_id": siparis_id, "odeme_sayisi": len(odeme_idleri)}
                )

            silinen_hareket = 0
            if odeme_idleri:
                silinen_hareket += self.db.query(semalar.CariHareket).filter(
                    semalar.CariHareket.odeme_id.in_(odeme_idleri)
                ).delete(synchronize_session=False)
            silinen_odeme = self.db.query(semalar.CariOdeme).filter(
                semalar.CariOdeme.siparis_id == siparis_id
            ).delete(synchronize_session=False)
            silinen_hareket += self.db.query(semalar.CariHareket).filter(
                semalar.CariHareket.siparis_id == siparis_id
            ).delete(synchronize_session=False)
            silinen_kalem = self.db.query(semalar.SiparisKalemi).filter(
                semalar.SiparisKalemi.siparis_id == siparis_id
            ).delete(synchronize_session=False)
            self.db.query(semalar.Siparis).filter(
                semalar.Siparis.id == siparis_id
            ).delete(synchronize_session=False)
            siparis_no = siparis.siparis_no

        logger.info(f"Sipariş {siparis_no} silindi ({silinen_odeme} ödeme, {silinen_hareket} hareket, {silinen_kalem} kalem).")
        denetim_kaydi(
            "SIPARIS_SIL", f"Sipariş {siparis_no} silindi",
            kullanici_id=kullanici_id, force=force, silinen_odeme=silinen_odeme,
        )
        return {
            "siparis_id": siparis_id,
            "silinen_odeme": silinen_odeme,
            "silinen_hareket": silinen_hareket,
            "silinen_kalem": silinen_kalem,
        }
