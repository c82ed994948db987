"""Sipariş ödemeleri ve cari hesap kayıtları testleri."""

import pytest

from cekirdek_api import semalar
from cekirdek_api.semalar import OdemeDurumuEnum, OdemeTuruEnum, IslemYoneEnum, KaynakTipEnum
from cekirdek_api.odeme_servisi import OdemeService, odeme_durumu_hesapla
from cekirdek_api.api_servisler import CariHesaplamaService
from cekirdek_api.hatalar import InvalidInputError, NotFoundError, OverpaymentError, HasPaymentsError


class TestOdemeDurumu:

    @pytest.mark.parametrize("odenen, toplam, beklenen", [
        (0, 1000, OdemeDurumuEnum.BEKLIYOR),
        (600, 1000, OdemeDurumuEnum.KISMI),
        (1000, 1000, OdemeDurumuEnum.TAMAMLANDI),
        (100.1, 100.10000000001, OdemeDurumuEnum.TAMAMLANDI),
        (0, 0, OdemeDurumuEnum.BEKLIYOR),
    ])
    def test_durum_hesaplama(self, odenen, toplam, beklenen):
        assert odeme_durumu_hesapla(odenen, toplam) == beklenen


class TestAddPayment:

    def test_kismi_fazla_ve_tamamlanan_odeme(self, db, siparis_olustur):
        siparis = siparis_olustur(1000.0)
        siparis_id = siparis.id
        servis = OdemeService(db)

        servis.add_payment(siparis_id, 600)
        assert db.get(semalar.Siparis, siparis_id).odeme_durumu == OdemeDurumuEnum.KISMI

        with pytest.raises(OverpaymentError) as exc:
            servis.add_payment(siparis_id, 500)
        assert exc.value.detay["kalan"] == 400.0
        assert exc.value.detay["toplam_odenen"] == 600.0
        assert db.query(semalar.CariOdeme).count() == 1

        servis.add_payment(siparis_id, 400, odeme_yontemi="EFT/HAVALE")
        assert db.get(semalar.Siparis, siparis_id).odeme_durumu == OdemeDurumuEnum.TAMAMLANDI
        assert servis.toplam_odenen(siparis_id) == 1000.0

    def test_kusuratli_odemeler_tam_kapatir(self, db, siparis_olustur):
        siparis_id = siparis_olustur(100.10).id
        servis = OdemeService(db)
        for tutar in (33.36, 33.37, 33.37):
            servis.add_payment(siparis_id, tutar)
        assert servis.toplam_odenen(siparis_id) == 100.10
        assert db.get(semalar.Siparis, siparis_id).odeme_durumu == OdemeDurumuEnum.TAMAMLANDI

        with pytest.raises(OverpaymentError):
            servis.add_payment(siparis_id, 0.01)

    def test_alacak_hareketi_yazilir(self, db, musteri, siparis_olustur):
        siparis_id = siparis_olustur(500.0).id
        odeme = OdemeService(db).add_payment(siparis_id, 200, odeme_yontemi=OdemeTuruEnum.KART)

        hareket = db.query(semalar.CariHareket).filter(semalar.CariHareket.odeme_id == odeme.id).one()
        assert hareket.islem_yone == IslemYoneEnum.ALACAK
        assert hareket.kaynak == KaynakTipEnum.ODEME
        assert hareket.siparis_id is None
        assert hareket.tutar == 200.0
        assert hareket.cari_musteri_id == musteri.id
        assert odeme.cari_musteri_id == musteri.id

    @pytest.mark.parametrize("tutar", [0, -10, None])
    def test_gecersiz_tutar(self, db, siparis_olustur, tutar):
        siparis_id = siparis_olustur(100.0).id
        with pytest.raises(InvalidInputError):
            OdemeService(db).add_payment(siparis_id, tutar)

    def test_gecersiz_odeme_yontemi(self, db, siparis_olustur):
        siparis_id = siparis_olustur(100.0).id
        with pytest.raises(InvalidInputError):
            OdemeService(db).add_payment(siparis_id, 10, odeme_yontemi="BITCOIN")

    def test_olmayan_siparis(self, db):
        with pytest.raises(NotFoundError):
            OdemeService(db).add_payment(9999, 10)

    def test_musterisiz_siparise_odeme_alinmaz(self, db):
        siparis = semalar.Siparis(siparis_no="SP-2025-09999", toplam_tutar=50.0)
        db.add(siparis)
        db.commit()
        with pytest.raises(InvalidInputError):
            OdemeService(db).add_payment(siparis.id, 10)


class TestDeletePayment:

    def test_silme_durumu_yeniden_hesaplar(self, db, siparis_olustur):
        siparis_id = siparis_olustur(1000.0).id
        servis = OdemeService(db)
        ilk = servis.add_payment(siparis_id, 600)
        servis.add_payment(siparis_id, 400)
        ilk_id = ilk.id

        sonuc = servis.delete_payment(siparis_id, ilk_id)

        assert sonuc == {
            "toplam_odenen": 400.0,
            "siparis_toplami": 1000.0,
            "odeme_durumu": OdemeDurumuEnum.KISMI,
        }
        assert db.query(semalar.CariHareket).filter(semalar.CariHareket.odeme_id == ilk_id).count() == 0
        assert db.get(semalar.Siparis, siparis_id).odeme_durumu == OdemeDurumuEnum.KISMI

    def test_son_odeme_silinince_bekliyor(self, db, siparis_olustur):
        siparis_id = siparis_olustur(100.0).id
        servis = OdemeService(db)
        odeme_id = servis.add_payment(siparis_id, 100).id
        assert servis.delete_payment(siparis_id, odeme_id)["odeme_durumu"] == OdemeDurumuEnum.BEKLIYOR

    def test_baska_siparisin_odemesi_silinemez(self, db, siparis_olustur):
        birinci = siparis_olustur(100.0).id
        ikinci = siparis_olustur(100.0).id
        odeme_id = OdemeService(db).add_payment(birinci, 50).id

        with pytest.raises(NotFoundError):
            OdemeService(db).delete_payment(ikinci, odeme_id)
        assert db.query(semalar.CariOdeme).count() == 1


class TestListPayments:

    def test_ozet_bilgiler(self, db, siparis_olustur):
        siparis_id = siparis_olustur(300.0).id
        servis = OdemeService(db)
        servis.add_payment(siparis_id, 100)
        servis.add_payment(siparis_id, 50.5)

        sonuc = servis.list_payments(siparis_id)
        assert sonuc["total"] == 2
        assert sonuc["toplam_odenen"] == 150.5
        assert sonuc["kalan"] == 149.5
        assert sonuc["odeme_durumu"] == OdemeDurumuEnum.KISMI


class TestDeleteOrder:

    def test_odemesi_olan_siparis_zorlanmadan_silinmez(self, db, siparis_olustur):
        siparis_id = siparis_olustur(1000.0).id
        OdemeService(db).add_payment(siparis_id, 100)

        with pytest.raises(HasPaymentsError) as exc:
            OdemeService(db).delete_order(siparis_id)
        assert exc.value.detay["odeme_sayisi"] == 1
        assert db.query(semalar.Siparis).count() == 1
        assert db.query(semalar.CariOdeme).count() == 1

    def test_zorla_silme_tum_kayitlari_temizler(self, db, siparis_olustur):
        siparis_id = siparis_olustur(1000.0).id
        servis = OdemeService(db)
        servis.add_payment(siparis_id, 600)
        servis.add_payment(siparis_id, 400)

        sonuc = servis.delete_order(siparis_id, force=True)

        assert sonuc == {"siparis_id": siparis_id, "silinen_odeme": 2, "silinen_hareket": 3, "silinen_kalem": 1}
        assert db.query(semalar.Siparis).filter(semalar.Siparis.id == siparis_id).count() == 0
        assert db.query(semalar.SiparisKalemi).filter(semalar.SiparisKalemi.siparis_id == siparis_id).count() == 0
        assert db.query(semalar.CariOdeme).filter(semalar.CariOdeme.siparis_id == siparis_id).count() == 0
        assert db.query(semalar.CariHareket).count() == 0

    def test_odemesiz_siparis_silinir(self, db, siparis_olustur):
        siparis_id = siparis_olustur(250.0).id
        sonuc = OdemeService(db).delete_order(siparis_id)
        assert sonuc["silinen_odeme"] == 0
        assert sonuc["silinen_hareket"] == 1
        assert db.query(semalar.Siparis).count() == 0

    def test_diger_siparisler_etkilenmez(self, db, siparis_olustur):
        silinecek = siparis_olustur(100.0).id
        kalan = siparis_olustur(200.0).id
        OdemeService(db).add_payment(kalan, 50)

        OdemeService(db).delete_order(silinecek)

        assert db.query(semalar.Siparis).count() == 1
        assert db.query(semalar.CariHareket).count() == 2

    def test_olmayan_siparis(self, db):
        with pytest.raises(NotFoundError):
            OdemeService(db).delete_order(9999)


class TestCariBakiye:

    def test_net_bakiye(self, db, musteri, siparis_olustur):
        siparis_id = siparis_olustur(1000.0).id
        OdemeService(db).add_payment(siparis_id, 600)

        servis = CariHesaplamaService(db)
        assert servis.calculate_cari_net_bakiye(musteri.id) == -400.0
        hareketler = servis.cari_hareketleri(musteri.id)
        assert {h.islem_yone for h in hareketler} == {IslemYoneEnum.BORC, IslemYoneEnum.ALACAK}

    def test_hareketsiz_musteri(self, db, musteri):
        assert CariHesaplamaService(db).calculate_cari_net_bakiye(musteri.id) == 0.0
