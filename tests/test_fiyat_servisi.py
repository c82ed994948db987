"""Fiyat çözümleme ve fiyat oluşturma testleri."""

from datetime import datetime, timedelta

import pytest

from cekirdek_api import semalar
from cekirdek_api.fiyat_servisi import FiyatService
from cekirdek_api.hatalar import (
    InvalidInputError, InvalidPriceError, NotFoundError,
    OverlappingPriceError, ProductInactiveError
)

SATIS = semalar.FiyatTipiEnum.SATIS
ALIS = semalar.FiyatTipiEnum.ALIS


def _aktif_fiyatlar(db, urun_id, fiyat_tipi=SATIS):
    return db.query(semalar.UrunFiyat).filter(
        semalar.UrunFiyat.urun_id == urun_id,
        semalar.UrunFiyat.fiyat_tipi == fiyat_tipi,
        semalar.UrunFiyat.aktif == True,
        semalar.UrunFiyat.silinme_tarihi.is_(None)
    ).all()


class TestResolvePrice:
    """Belirli bir tarihte geçerli fiyatın bulunması."""

    def test_tarihe_gore_dogru_kayit_secilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        ocak = fiyat_ekle(urun.id, 100, datetime(2025, 1, 1), datetime(2025, 1, 31))
        subat = fiyat_ekle(urun.id, 120, datetime(2025, 2, 1))
        servis = FiyatService(db)

        assert servis.resolve_price(urun.id, SATIS, datetime(2025, 1, 15)).id == ocak.id
        assert servis.resolve_price(urun.id, SATIS, datetime(2025, 3, 1)).id == subat.id
        assert servis.resolve_price(urun.id, SATIS, datetime(2024, 12, 31)) is None

    def test_bitis_tarihi_araliga_dahildir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat = fiyat_ekle(urun.id, 100, datetime(2025, 1, 1), datetime(2025, 1, 31))
        assert FiyatService(db).resolve_price(urun.id, SATIS, datetime(2025, 1, 31)).id == fiyat.id

    def test_en_son_baslayan_kayit_kazanir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat_ekle(urun.id, 100, datetime(2025, 1, 1))
        yeni = fiyat_ekle(urun.id, 130, datetime(2025, 2, 1))
        assert FiyatService(db).resolve_price(urun.id, SATIS, datetime(2025, 3, 1)).id == yeni.id

    def test_ayni_baslangicta_en_son_olusturulan_kazanir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat_ekle(urun.id, 100, datetime(2025, 1, 1), olusturma_tarihi=datetime(2024, 12, 1))
        sonra = fiyat_ekle(urun.id, 110, datetime(2025, 1, 1), olusturma_tarihi=datetime(2024, 12, 20))
        assert FiyatService(db).resolve_price(urun.id, SATIS, datetime(2025, 1, 5)).id == sonra.id

    def test_pasif_ve_silinmis_kayitlar_dikkate_alinmaz(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat_ekle(urun.id, 100, datetime(2025, 1, 1), aktif=False)
        silinen = fiyat_ekle(urun.id, 110, datetime(2025, 1, 1))
        silinen.silinme_tarihi = datetime.now()
        db.commit()
        assert FiyatService(db).resolve_price(urun.id, SATIS, datetime(2025, 1, 5)) is None

    def test_fiyat_tipleri_birbirinden_bagimsizdir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        alis = fiyat_ekle(urun.id, 60, datetime(2025, 1, 1), fiyat_tipi=ALIS)
        servis = FiyatService(db)
        assert servis.resolve_price(urun.id, SATIS, datetime(2025, 1, 5)) is None
        assert servis.resolve_price(urun.id, "ALIS", datetime(2025, 1, 5)).id == alis.id

    def test_tarih_verilmezse_simdiki_zaman_kullanilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat = fiyat_ekle(urun.id, 100, datetime.now() - timedelta(days=1))
        assert FiyatService(db).resolve_price(urun.id, SATIS).id == fiyat.id

    def test_gecersiz_fiyat_tipi(self, db, urun_olustur):
        urun = urun_olustur()
        with pytest.raises(InvalidInputError):
            FiyatService(db).resolve_price(urun.id, "INDIRIM")


class TestCreatePrice:
    """Fiyat oluşturma ve çakışma koruması."""

    def test_fiyat_olusturulur(self, db, urun_olustur, kullanici):
        urun = urun_olustur()
        fiyat = FiyatService(db).create_price(
            urun.id, 150.0, datetime(2025, 1, 1), kullanici_id=kullanici.id
        )
        assert fiyat.id is not None
        assert fiyat.aktif is True
        assert fiyat.eski_fiyat is None
        assert fiyat.olusturan_kullanici_id == kullanici.id

    def test_cakisan_aralik_reddedilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        mevcut = fiyat_ekle(urun.id, 100, datetime(2025, 1, 1))

        with pytest.raises(OverlappingPriceError) as exc_info:
            FiyatService(db).create_price(urun.id, 120, datetime(2025, 2, 1))

        assert exc_info.value.detay["cakisan_fiyat_idleri"] == [mevcut.id]
        assert len(_aktif_fiyatlar(db, urun.id)) == 1

    def test_kapali_aralik_icine_dusen_kayit_reddedilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat_ekle(urun.id, 100, datetime(2025, 3, 1), datetime(2025, 3, 31))
        with pytest.raises(OverlappingPriceError):
            FiyatService(db).create_price(urun.id, 120, datetime(2025, 1, 1), bitis_tarihi=datetime(2025, 3, 1))

    def test_cakismayan_aralik_kabul_edilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat_ekle(urun.id, 100, datetime(2025, 1, 1), datetime(2025, 1, 31))
        FiyatService(db).create_price(urun.id, 120, datetime(2025, 2, 1))
        assert len(_aktif_fiyatlar(db, urun.id)) == 2

    def test_farkli_fiyat_tipleri_cakismaz(self, db, urun_olustur):
        urun = urun_olustur()
        servis = FiyatService(db)
        servis.create_price(urun.id, 120, datetime(2025, 1, 1), fiyat_tipi=SATIS)
        servis.create_price(urun.id, 80, datetime(2025, 1, 1), fiyat_tipi=ALIS)
        assert len(_aktif_fiyatlar(db, urun.id, SATIS)) == 1
        assert len(_aktif_fiyatlar(db, urun.id, ALIS)) == 1

    def test_eskiyi_kapat_onceki_kaydi_kapatir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        eski = fiyat_ekle(urun.id, 100, datetime(2025, 1, 1))
        eski_id = eski.id
        servis = FiyatService(db)

        yeni = servis.create_price(urun.id, 125, datetime(2025, 2, 1), eskiyi_kapat=True)

        eski = db.get(semalar.UrunFiyat, eski_id)
        assert eski.bitis_tarihi == datetime(2025, 2, 1) - timedelta(seconds=1)
        assert eski.aktif is True
        assert yeni.eski_fiyat == 100
        assert yeni.degisim_yuzdesi == 25.0
        assert servis.resolve_price(urun.id, SATIS, datetime(2025, 1, 31, 23, 0)).id == eski_id
        assert servis.resolve_price(urun.id, SATIS, datetime(2025, 2, 1)).id == yeni.id

    def test_eskiyi_kapat_sonra_baslayan_kaydi_pasife_alir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        ileri = fiyat_ekle(urun.id, 100, datetime(2025, 3, 1))
        ileri_id = ileri.id

        FiyatService(db).create_price(urun.id, 110, datetime(2025, 2, 1), eskiyi_kapat=True)

        assert db.get(semalar.UrunFiyat, ileri_id).aktif is False
        assert len(_aktif_fiyatlar(db, urun.id)) == 1

    def test_aktif_fiyatlar_hicbir_zaman_cakismaz(self, db, urun_olustur):
        """Art arda oluşturulan fiyatlardan sonra hiçbir aktif aralık çakışmamalı."""
        urun = urun_olustur()
        servis = FiyatService(db)
        servis.create_price(urun.id, 100, datetime(2025, 1, 1))
        servis.create_price(urun.id, 110, datetime(2025, 2, 1), eskiyi_kapat=True)
        with pytest.raises(OverlappingPriceError):
            servis.create_price(urun.id, 115, datetime(2025, 2, 15))
        servis.create_price(urun.id, 105, datetime(2025, 1, 20), eskiyi_kapat=True)
        servis.create_price(urun.id, 130, datetime(2025, 4, 1), eskiyi_kapat=True)

        aktifler = sorted(_aktif_fiyatlar(db, urun.id), key=lambda f: f.baslangic_tarihi)
        for onceki, sonraki in zip(aktifler, aktifler[1:]):
            assert onceki.bitis_tarihi is not None
            assert onceki.bitis_tarihi < sonraki.baslangic_tarihi

    @pytest.mark.parametrize("birim_fiyat", [0, -5])
    def test_sifir_veya_negatif_fiyat_reddedilir(self, db, urun_olustur, birim_fiyat):
        urun = urun_olustur()
        with pytest.raises(InvalidPriceError):
            FiyatService(db).create_price(urun.id, birim_fiyat, datetime(2025, 1, 1))

    @pytest.mark.parametrize("bitis", [datetime(2025, 1, 1), datetime(2024, 12, 1)])
    def test_bitis_baslangictan_sonra_olmali(self, db, urun_olustur, bitis):
        urun = urun_olustur()
        with pytest.raises(InvalidPriceError):
            FiyatService(db).create_price(urun.id, 100, datetime(2025, 1, 1), bitis_tarihi=bitis)

    def test_pasif_urune_fiyat_verilemez(self, db, urun_olustur):
        urun = urun_olustur(aktif=False)
        with pytest.raises(ProductInactiveError):
            FiyatService(db).create_price(urun.id, 100, datetime(2025, 1, 1))

    def test_silinmis_urune_fiyat_verilemez(self, db, urun_olustur):
        urun = urun_olustur()
        urun.silinme_tarihi = datetime.now()
        db.commit()
        with pytest.raises(ProductInactiveError):
            FiyatService(db).create_price(urun.id, 100, datetime(2025, 1, 1))

    def test_olmayan_urun(self, db):
        with pytest.raises(NotFoundError):
            FiyatService(db).create_price(9999, 100, datetime(2025, 1, 1))


class TestUpdatePrice:
    """Fiyat güncellemede doğrulama ve çakışma kontrolü."""

    def test_fiyat_guncellenir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat = fiyat_ekle(urun.id, 100, datetime(2025, 1, 1))
        guncel = FiyatService(db).update_price(fiyat.id, {"birim_fiyat": 140.0, "aciklama": "zam"})
        assert guncel.birim_fiyat == 140.0
        assert guncel.aciklama == "zam"

    def test_guncelleme_cakisma_yaratamaz(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat_ekle(urun.id, 100, datetime(2025, 1, 1), datetime(2025, 1, 31))
        ikinci = fiyat_ekle(urun.id, 120, datetime(2025, 2, 1))
        with pytest.raises(OverlappingPriceError):
            FiyatService(db).update_price(ikinci.id, {"baslangic_tarihi": datetime(2025, 1, 15)})

    def test_gecersiz_aralik_reddedilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat = fiyat_ekle(urun.id, 100, datetime(2025, 1, 1))
        with pytest.raises(InvalidPriceError):
            FiyatService(db).update_price(fiyat.id, {"bitis_tarihi": datetime(2024, 6, 1)})

    def test_olmayan_kayit(self, db):
        with pytest.raises(NotFoundError):
            FiyatService(db).update_price(9999, {"birim_fiyat": 10})

    def test_bos_baslangic_tarihi_reddedilir(self, db, urun_olustur, fiyat_ekle):
        """Başlangıç tarihi null gönderilirse kayıt bugüne kaydırılmaz."""
        urun = urun_olustur()
        fiyat = fiyat_ekle(urun.id, 100, datetime(2020, 1, 1))
        with pytest.raises(InvalidInputError):
            FiyatService(db).update_price(fiyat.id, {"baslangic_tarihi": None})
        db.expire_all()
        assert db.get(semalar.UrunFiyat, fiyat.id).baslangic_tarihi == datetime(2020, 1, 1)

    def test_bos_birim_fiyat_reddedilir(self, db, urun_olustur, fiyat_ekle):
        urun = urun_olustur()
        fiyat = fiyat_ekle(urun.id, 100, datetime(2020, 1, 1))
        with pytest.raises(InvalidInputError):
            FiyatService(db).update_price(fiyat.id, {"birim_fiyat": None})
        db.expire_all()
        assert db.get(semalar.UrunFiyat, fiyat.id).birim_fiyat == 100


class TestFiyatGecmisi:
    """Fiyat geçmişi ve fiyat değişiklikleri."""

    def test_gecmis_en_yeni_once(self, db, urun_olustur):
        urun = urun_olustur()
        servis = FiyatService(db)
        servis.create_price(urun.id, 100, datetime(2025, 1, 1))
        servis.create_price(urun.id, 110, datetime(2025, 2, 1), eskiyi_kapat=True)
        servis.create_price(urun.id, 50, datetime(2025, 1, 1), fiyat_tipi=ALIS)

        gecmis = servis.price_history(urun.id, SATIS)
        assert [f.birim_fiyat for f in gecmis] == [110, 100]
        assert len(servis.price_history(urun.id)) == 3

    def test_degisiklikler_sadece_onceki_fiyati_olanlar(self, db, urun_olustur):
        urun = urun_olustur()
        servis = FiyatService(db)
        servis.create_price(urun.id, 100, datetime(2025, 1, 1))
        yeni = servis.create_price(urun.id, 90, datetime(2025, 2, 1), eskiyi_kapat=True)

        degisiklikler = servis.price_changes(datetime(2025, 1, 1), datetime(2025, 12, 31))
        assert [f.id for f in degisiklikler] == [yeni.id]
        assert degisiklikler[0].degisim_yuzdesi == -10.0
