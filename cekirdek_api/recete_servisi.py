from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Optional
import logging

from . import semalar, modeller
from .veritabani import islem
from .hatalar import InvalidInputError, NotFoundError, ProductInactiveError, RecipeInUseError
from .maliyet_servisi import MaliyetService
from .cop_kutusu_servisi import CopKutusuService
from .denetim import denetim_kaydi

logger = logging.getLogger(__name__)

# Bu durumlardaki siparişlerde kullanılan reçeteler silinemez
URETIMDEKI_DURUMLAR = (semalar.SiparisDurumEnum.HAZIRLANACAK, semalar.SiparisDurumEnum.HAZIRLANDI)


class ReceteService:
    def __init__(self, db: Session, maliyet_servisi: Optional[MaliyetService] = None):
        self.db = db
        self.maliyet = maliyet_servisi or MaliyetService(db)

    def _urun_kontrol(self, urun_id: Optional[int]) -> None:
        if urun_id is None:
            return
        urun = self.db.query(semalar.Urun).filter(semalar.Urun.id == urun_id).first()
        if not urun:
            raise NotFoundError("Ürün bulunamadı.", detay={"urun_id": urun_id})
        if not urun.aktif or urun.silinme_tarihi is not None:
            raise ProductInactiveError("Reçete pasif bir ürüne bağlanamaz.", detay={"urun_id": urun_id})

    def _hammaddeleri_getir(self, kalemler) -> dict:
        if not kalemler:
            raise InvalidInputError("Reçete en az bir kalem içermelidir.")
        for k in kalemler:
            if k.miktar is None or k.miktar <= 0:
                raise InvalidInputError("Kalem miktarı sıfırdan büyük olmalıdır.", detay={"hammadde_id": k.hammadde_id})
        idler = {k.hammadde_id for k in kalemler}
        hammaddeler = {
            h.id: h for h in self.db.query(semalar.Hammadde).filter(
                semalar.Hammadde.id.in_(idler),
                semalar.Hammadde.aktif == True
            ).all()
        }
        eksikler = sorted(idler - set(hammaddeler))
        if eksikler:
            raise InvalidInputError("Bazı hammaddeler bulunamadı veya pasif.", detay={"hammadde_idleri": eksikler})
        return hammaddeler

    def _kalemleri_olustur(self, recete: semalar.Recete, kalemler, hammaddeler: dict) -> float:
        tarih = datetime.now()
        toplam = 0.0
        for sira, k in enumerate(kalemler, start=1):
            hammadde = hammaddeler[k.hammadde_id]
            fiyat, _ = self.maliyet.birim_fiyat(hammadde, tarih)
            maliyet = round(fiyat * k.miktar, 2)
            toplam += fiyat * k.miktar
            recete.kalemler.append(semalar.ReceteKalemi(
                hammadde_id=k.hammadde_id,
                miktar=k.miktar,
                birim=k.birim or hammadde.birim,
                son_fiyat=fiyat,
                maliyet=maliyet,
                sira_no=sira,
            ))
        return toplam

    def _maliyetleri_ata(self, recete: semalar.Recete, toplam: float) -> None:
        porsiyon = recete.porsiyon if recete.porsiyon and recete.porsiyon > 0 else 1.0
        recete.toplam_maliyet = round(toplam, 2)
        recete.birim_maliyet = round(toplam / porsiyon, 2)

    def create_recipe(self, veri: modeller.ReceteCreate, kullanici_id: Optional[int] = None) -> semalar.Recete:
        if not veri.ad or not veri.ad.strip():
            raise InvalidInputError("Reçete adı zorunludur.")
        if veri.porsiyon is None or veri.porsiyon <= 0:
            raise InvalidInputError("Porsiyon sıfırdan büyük olmalıdır.")
        self._urun_kontrol(veri.urun_id)
        hammaddeler = self._hammaddeleri_getir(veri.kalemler)

        with islem(self.db):
            recete = semalar.Recete(
                kod=f"RC{datetime.now().strftime('%Y%m%d%H%M%S%f')}",
                ad=veri.ad.strip(),
                aciklama=veri.aciklama,
                urun_id=veri.urun_id,
                porsiyon=veri.porsiyon,
                aktif=True,
            )
            toplam = self._kalemleri_olustur(recete, veri.kalemler, hammaddeler)
            self._maliyetleri_ata(recete, toplam)
            self.db.add(recete)
            self.db.flush()

        self.db.refresh(recete)
        logger.info(f"Reçete oluşturuldu: {recete.kod} ({recete.ad})")
        denetim_kaydi("RECETE_OLUSTUR", f"Reçete {recete.kod} oluşturuldu", kullanici_id=kullanici_id,
                      sonra={"recete_id": recete.id, "toplam_maliyet": recete.toplam_maliyet})
        return recete

    def update_recipe(self, recete_id: int, veri: modeller.ReceteUpdate,
                      kullanici_id: Optional[int] = None) -> semalar.Recete:
        """Kalemler verilirse mevcut kalemlerin tamamı silinip yeniden oluşturulur."""
        recete = self.db.query(semalar.Recete).filter(
            semalar.Recete.id == recete_id,
            semalar.Recete.silinme_tarihi.is_(None)
        ).first()
        if not recete:
            raise NotFoundError("Reçete bulunamadı.", detay={"recete_id": recete_id})

        update_data = veri.model_dump(exclude_unset=True, exclude={"kalemler"})
        if "urun_id" in update_data:
            self._urun_kontrol(update_data["urun_id"])
        if "porsiyon" in update_data and (update_data["porsiyon"] is None or update_data["porsiyon"] <= 0):
            raise InvalidInputError("Porsiyon sıfırdan büyük olmalıdır.")
        hammaddeler = self._hammaddeleri_getir(veri.kalemler) if veri.kalemler is not None else None

        with islem(self.db):
            for key, value in update_data.items():
                setattr(recete, key, value)
            if hammaddeler is not None:
                recete.kalemler.clear()
                self.db.flush()
                toplam = self._kalemleri_olustur(recete, veri.kalemler, hammaddeler)
            else:
                toplam = recete.toplam_maliyet or 0.0
            self._maliyetleri_ata(recete, toplam)
            recete.guncelleme_tarihi = datetime.now()
            self.db.flush()

        self.db.refresh(recete)
        denetim_kaydi("RECETE_GUNCELLE", f"Reçete {recete.kod} güncellendi", kullanici_id=kullanici_id,
                      sonra=update_data)
        return recete

    def uretimde_mi(self, recete: semalar.Recete) -> bool:
        if recete.urun_id is None:
            return False
        sayi = self.db.query(func.count(semalar.Siparis.id)).join(
            semalar.SiparisKalemi, semalar.SiparisKalemi.siparis_id == semalar.Siparis.id
        ).filter(
            semalar.SiparisKalemi.urun_id == recete.urun_id,
            semalar.Siparis.durum.in_(URETIMDEKI_DURUMLAR)
        ).scalar()
        return bool(sayi)

    def delete_recipe(self, recete_id: int, kullanici_id: Optional[int] = None,
                      sebep: Optional[str] = None) -> semalar.Recete:
        recete = self.db.query(semalar.Recete).filter(
            semalar.Recete.id == recete_id,
            semalar.Recete.silinme_tarihi.is_(None)
        ).first()
        if not recete:
            raise NotFoundError("Reçete bulunamadı.", detay={"recete_id": recete_id})
        if self.uretimde_mi(recete):
            raise RecipeInUseError(
                "Bu reçete hazırlık aşamasındaki siparişlerde kullanılıyor, silinemez.",
                detay={"recete_id": recete_id, "urun_id": recete.urun_id}
            )
        return CopKutusuService(self.db).soft_delete(
            semalar.CopTipiEnum.RECETE, recete_id, kullanici_id=kullanici_id,
            sebep=sebep or "Yönetici silme işlemi"
        )
