from abc import ABC, abstractmethod
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from . import semalar, modeller
from .semalar import FiyatTipiEnum
from .veritabani import islem
from .hatalar import InvalidInputError, NotFoundError
from .fiyat_servisi import FiyatService
from .denetim import denetim_kaydi

logger = logging.getLogger(__name__)

KAYNAK_HAMMADDE = "HAMMADDE"
KAYNAK_YEDEK = "YEDEK"
KAYNAK_YOK = "YOK"


class FiyatYedekStratejisi(ABC):
    """Hammaddenin kendi birim fiyatı yoksa başvurulan fiyat kaynağı."""

    @abstractmethod
    def birim_fiyat_bul(self, db: Session, hammadde: semalar.Hammadde, tarih: datetime) -> Optional[float]:
        pass


class AyniIsimliUrunStratejisi(FiyatYedekStratejisi):
    """
    Hammadde ile aynı isimli (büyük/küçük harf duyarsız) aktif ürünün o tarihteki
    SATIS fiyatını kullanır.

    Veri kalitesi geçici çözümüdür: hammadde ile ürün arasında gerçek bir ilişki yok,
    eşleşme sadece isim üzerinden yapılır. Hammaddelere fiyat girildikçe devreden çıkar.
    """

    def birim_fiyat_bul(self, db, hammadde, tarih):
        if not hammadde.ad:
            return None
        urun = db.query(semalar.Urun).filter(
            func.lower(semalar.Urun.ad) == hammadde.ad.lower(),
            semalar.Urun.aktif == True,
            semalar.Urun.silinme_tarihi.is_(None)
        ).order_by(semalar.Urun.id).first()
        if not urun:
            return None
        fiyat = FiyatService(db).resolve_price(urun.id, FiyatTipiEnum.SATIS, tarih)
        return fiyat.birim_fiyat if fiyat else None


class YedekFiyatYok(FiyatYedekStratejisi):
    def birim_fiyat_bul(self, db, hammadde, tarih):
        return None


def _yuvarla(deger: float) -> float:
    return round(deger or 0.0, 2)


class MaliyetService:
    def __init__(self, db: Session, yedek_strateji: Optional[FiyatYedekStratejisi] = None):
        self.db = db
        self.yedek_strateji = yedek_strateji or AyniIsimliUrunStratejisi()

    def birim_fiyat(self, hammadde: Optional[semalar.Hammadde], tarih: datetime) -> Tuple[float, str]:
        """Hammadde birim fiyatı ve kaynağı. Hata fırlatmaz, bulunamazsa 0 döner."""
        if hammadde is None:
            return 0.0, KAYNAK_YOK
        if hammadde.birim_fiyat:
            return float(hammadde.birim_fiyat), KAYNAK_HAMMADDE
        try:
            yedek = self.yedek_strateji.birim_fiyat_bul(self.db, hammadde, tarih)
        except Exception as e:
            logger.warning(f"Yedek fiyat bulunamadı (hammadde {hammadde.id}): {e}")
            yedek = None
        if yedek:
            return float(yedek), KAYNAK_YEDEK
        return 0.0, KAYNAK_YOK

    def get_current_cost(self, recete_id: int, detay: bool = False, marj: bool = False,
                         tarih: Optional[datetime] = None) -> modeller.MaliyetRaporu:
        """
        Reçetenin güncel maliyetini hammadde fiyatlarından yeniden hesaplar.

        Kayıtlı maliyet sadece karşılaştırma için kullanılır. Reçete yoksa
        sıfır maliyetli bir rapor döner. `marj` yetki kontrolü çağıran tarafa aittir.
        """
        tarih = tarih or datetime.now()
        recete = self.db.query(semalar.Recete).filter(semalar.Recete.id == recete_id).first()
        if not recete:
            return modeller.MaliyetRaporu(
                recete_id=recete_id, bulundu=False, porsiyon=1.0,
                toplam_maliyet=0.0, birim_maliyet=0.0,
                kayitli_toplam_maliyet=0.0, kayitli_birim_maliyet=0.0, maliyet_farki=0.0,
                kalemler=[] if detay else None, hesaplama_tarihi=tarih,
            )

        porsiyon = recete.porsiyon if recete.porsiyon and recete.porsiyon > 0 else 1.0
        satirlar = []
        toplam = 0.0
        for kalem in recete.kalemler:
            fiyat, kaynak = self.birim_fiyat(kalem.hammadde, tarih)
            maliyet = fiyat * (kalem.miktar or 0.0)
            toplam += maliyet
            satirlar.append((kalem, fiyat, kaynak, maliyet))

        birim_maliyet = toplam / porsiyon
        kayitli_toplam = recete.toplam_maliyet or 0.0

        kalemler = None
        if detay:
            kalemler = []
            for kalem, fiyat, kaynak, maliyet in satirlar:
                kayitli = kalem.maliyet or 0.0
                kalemler.append(modeller.MaliyetKalemi(
                    kalem_id=kalem.id,
                    hammadde_id=kalem.hammadde_id,
                    hammadde_adi=kalem.hammadde.ad if kalem.hammadde else None,
                    miktar=kalem.miktar,
                    birim=kalem.birim,
                    birim_fiyat=fiyat,
                    fiyat_kaynagi=kaynak,
                    maliyet=_yuvarla(maliyet),
                    kayitli_maliyet=_yuvarla(kayitli),
                    maliyet_yuzdesi=_yuvarla(maliyet / toplam * 100) if toplam > 0 else 0.0,
                    maliyet_farki=_yuvarla(maliyet - kayitli),
                ))

        marj_analizi = None
        if marj:
            marj_analizi = self._marj_analizi(recete, birim_maliyet, tarih)

        return modeller.MaliyetRaporu(
            recete_id=recete.id,
            recete_adi=recete.ad,
            porsiyon=porsiyon,
            toplam_maliyet=_yuvarla(toplam),
            birim_maliyet=_yuvarla(birim_maliyet),
            kayitli_toplam_maliyet=_yuvarla(kayitli_toplam),
            kayitli_birim_maliyet=_yuvarla(recete.birim_maliyet),
            maliyet_farki=_yuvarla(toplam - kayitli_toplam),
            kalemler=kalemler,
            marj=marj_analizi,
            hesaplama_tarihi=tarih,
        )

    def _marj_analizi(self, recete: semalar.Recete, birim_maliyet: float, tarih: datetime) -> modeller.MarjAnalizi:
        satis_fiyati = 0.0
        if recete.urun_id:
            fiyat = FiyatService(self.db).resolve_price(recete.urun_id, FiyatTipiEnum.SATIS, tarih)
            if fiyat:
                satis_fiyati = fiyat.birim_fiyat
        brut_kar = satis_fiyati - birim_maliyet
        return modeller.MarjAnalizi(
            satis_fiyati=_yuvarla(satis_fiyati),
            birim_maliyet=_yuvarla(birim_maliyet),
            brut_kar=_yuvarla(brut_kar),
            kar_marji_yuzdesi=_yuvarla(brut_kar / satis_fiyati * 100) if satis_fiyati > 0 else 0.0,
            markup_yuzdesi=_yuvarla(brut_kar / birim_maliyet * 100) if birim_maliyet > 0 else 0.0,
        )

    def _hesapla(self, girdiler, porsiyon: float, tarih: datetime):
        """girdiler: (kalem veya None, hammadde_id, miktar, birim) listesi."""
        hammadde_idleri = {hammadde_id for _, hammadde_id, _, _ in girdiler}
        hammaddeler = {}
        if hammadde_idleri:
            hammaddeler = {
                h.id: h for h in self.db.query(semalar.Hammadde).filter(
                    semalar.Hammadde.id.in_(hammadde_idleri)
                ).all()
            }

        sonuclar = []
        atlananlar = []
        toplam = 0.0
        for kalem, hammadde_id, miktar, birim in girdiler:
            hammadde = hammaddeler.get(hammadde_id)
            if hammadde is None or not hammadde.aktif:
                logger.warning(f"Hammadde {hammadde_id} bulunamadı veya pasif, hesaplamaya katılmadı.")
                atlananlar.append(hammadde_id)
                continue
            fiyat, kaynak = self.birim_fiyat(hammadde, tarih)
            maliyet = fiyat * (miktar or 0.0)
            toplam += maliyet
            sonuclar.append((kalem, modeller.MaliyetKalemi(
                kalem_id=kalem.id if kalem is not None else None,
                hammadde_id=hammadde_id,
                hammadde_adi=hammadde.ad,
                miktar=miktar,
                birim=birim or hammadde.birim,
                birim_fiyat=fiyat,
                fiyat_kaynagi=kaynak,
                maliyet=_yuvarla(maliyet),
            )))

        porsiyon = porsiyon if porsiyon and porsiyon > 0 else 1.0
        for _, satir in sonuclar:
            satir.maliyet_yuzdesi = _yuvarla(satir.maliyet / toplam * 100) if toplam > 0 else 0.0
        return sonuclar, atlananlar, toplam, porsiyon

    def recalculate(self, recete_id: Optional[int] = None, kalemler: Optional[List] = None,
                    porsiyon: Optional[float] = None, kaydet: bool = False,
                    tarih: Optional[datetime] = None,
                    kullanici_id: Optional[int] = None) -> modeller.HesaplamaSonucu:
        """
        Kayıtlı bir reçeteyi ya da serbest bir kalem listesini hesaplar.

        Bulunamayan veya pasif hammaddeler atlanır. `kaydet` sadece kayıtlı reçeteler
        için geçerlidir ve reçete ile kalemlerinin maliyetlerini tek işlemde günceller.
        """
        tarih = tarih or datetime.now()
        if recete_id is None and not kalemler:
            raise InvalidInputError("Reçete kimliği veya kalem listesi verilmelidir.")
        if kaydet and recete_id is None:
            raise InvalidInputError("Sadece kayıtlı reçetelerin maliyeti kaydedilebilir.")

        recete = None
        if recete_id is not None:
            recete = self.db.query(semalar.Recete).filter(
                semalar.Recete.id == recete_id,
                semalar.Recete.silinme_tarihi.is_(None)
            ).first()
            if not recete:
                raise NotFoundError("Reçete bulunamadı.", detay={"recete_id": recete_id})
            girdiler = [(k, k.hammadde_id, k.miktar, k.birim) for k in recete.kalemler]
            if porsiyon is None:
                porsiyon = recete.porsiyon
        else:
            girdiler = []
            for k in kalemler:
                if isinstance(k, dict):
                    k = modeller.ReceteKalemiCreate(**k)
                girdiler.append((None, k.hammadde_id, k.miktar, k.birim))

        sonuclar, atlananlar, toplam, porsiyon = self._hesapla(girdiler, porsiyon, tarih)
        birim_maliyet = toplam / porsiyon

        if kaydet:
            with islem(self.db):
                self._maliyeti_yaz(recete, sonuclar, toplam, birim_maliyet)
            logger.info(f"Reçete {recete.id} maliyeti güncellendi: toplam {_yuvarla(toplam)}, birim {_yuvarla(birim_maliyet)}")
            denetim_kaydi(
                "RECETE_MALIYET_KAYDET", f"Reçete {recete.id} maliyeti yeniden hesaplanıp kaydedildi",
                kullanici_id=kullanici_id,
                sonra={"toplam_maliyet": _yuvarla(toplam), "birim_maliyet": _yuvarla(birim_maliyet)},
            )

        return modeller.HesaplamaSonucu(
            recete_id=recete_id,
            porsiyon=porsiyon,
            toplam_maliyet=_yuvarla(toplam),
            birim_maliyet=_yuvarla(birim_maliyet),
            kalemler=[satir for _, satir in sonuclar],
            atlanan_hammaddeler=atlananlar,
            kaydedildi=kaydet,
        )

    def _maliyeti_yaz(self, recete, sonuclar, toplam: float, birim_maliyet: float) -> None:
        for kalem, satir in sonuclar:
            if kalem is not None:
                kalem.son_fiyat = satir.birim_fiyat
                kalem.maliyet = satir.maliyet
        recete.toplam_maliyet = _yuvarla(toplam)
        recete.birim_maliyet = _yuvarla(birim_maliyet)
        recete.guncelleme_tarihi = datetime.now()
        self.db.flush()

    def recete_maliyetini_guncelle(self, recete: semalar.Recete, tarih: datetime) -> None:
        girdiler = [(k, k.hammadde_id, k.miktar, k.birim) for k in recete.kalemler]
        sonuclar, _, toplam, porsiyon = self._hesapla(girdiler, recete.porsiyon, tarih)
        self._maliyeti_yaz(recete, sonuclar, toplam, toplam / porsiyon)

    def recalculate_all(self, recete_idleri: Optional[List[int]] = None, sadece_aktif: bool = True,
                        tarih: Optional[datetime] = None,
                        kullanici_id: Optional[int] = None) -> modeller.TopluHesaplamaSonucu:
        """
        Reçetelerin maliyetini toplu olarak yeniden hesaplayıp kaydeder.

        Her reçete kendi savepoint'i içinde yazılır; hata veren reçete geri alınıp
        atlanır, diğerleri etkilenmez. Dönen sayı gerçekten güncellenenlerdir.
        """
        tarih = tarih or datetime.now()
        guncellenen = 0
        atlanan = []

        with islem(self.db):
            query = self.db.query(semalar.Recete).filter(semalar.Recete.silinme_tarihi.is_(None))
            if sadece_aktif:
                query = query.filter(semalar.Recete.aktif == True)
            if recete_idleri is not None:
                query = query.filter(semalar.Recete.id.in_(recete_idleri))

            for recete in query.order_by(semalar.Recete.id).all():
                recete_id = recete.id
                try:
                    with self.db.begin_nested():
                        self.recete_maliyetini_guncelle(recete, tarih)
                    guncellenen += 1
                except Exception as e:
                    logger.warning(f"Reçete {recete_id} maliyeti güncellenemedi, atlandı: {e}")
                    atlanan.append(recete_id)

        logger.info(f"Toplu maliyet hesaplama tamamlandı: {guncellenen} güncellendi, {len(atlanan)} atlandı.")
        denetim_kaydi(
            "RECETE_TOPLU_MALIYET", f"{guncellenen} reçetenin maliyeti güncellendi",
            kullanici_id=kullanici_id, atlanan=atlanan,
        )
        return modeller.TopluHesaplamaSonucu(guncellenen=guncellenen, atlanan=atlanan)
