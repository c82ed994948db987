from sqlalchemy.orm import Session
from sqlalchemy import func, case
from typing import List
from . import semalar

class CariHesaplamaService:
    def __init__(self, db: Session):
        self.db = db

    def calculate_cari_net_bakiye(self, cari_musteri_id: int) -> float:
        """
        Cari müşterinin net bakiyesini (ALACAK - BORC) tek bir sorguda hesaplar.
        Negatif sonuç müşterinin borçlu olduğunu gösterir.
        """
        result = self.db.query(
            func.coalesce(func.sum(case((semalar.CariHareket.islem_yone == semalar.IslemYoneEnum.ALACAK, semalar.CariHareket.tutar), else_=0)), 0).label('alacak_toplami'),
            func.coalesce(func.sum(case((semalar.CariHareket.islem_yone == semalar.IslemYoneEnum.BORC, semalar.CariHareket.tutar), else_=0)), 0).label('borc_toplami')
        ).filter(
            semalar.CariHareket.cari_musteri_id == cari_musteri_id
        ).one()

        net_bakiye = result.alacak_toplami - result.borc_toplami
        return round(float(net_bakiye), 2)

    def cari_hareketleri(self, cari_musteri_id: int, limit: int = 100) -> List[semalar.CariHareket]:
        return self.db.query(semalar.CariHareket).filter(
            semalar.CariHareket.cari_musteri_id == cari_musteri_id
        ).order_by(semalar.CariHareket.tarih.desc(), semalar.CariHareket.id.desc()).limit(limit).all()
